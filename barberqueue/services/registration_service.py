# barberqueue/services/registration_service.py

import logging
from typing import List, Optional

from sqlmodel import Session, select

from ..errors import ConflictError, NotFoundError
from ..models import RegistrationRequest

logger = logging.getLogger(__name__)


def submit_request(session: Session, **fields) -> RegistrationRequest:
    request = RegistrationRequest(**fields, status="pending")
    session.add(request)
    session.commit()
    session.refresh(request)
    logger.info("Registration request %s submitted for %s", request.id, request.shop_name)
    return request


def list_requests(session: Session, status: Optional[str] = None) -> List[RegistrationRequest]:
    stmt = select(RegistrationRequest)
    if status is not None:
        stmt = stmt.where(RegistrationRequest.status == status)
    return session.exec(stmt.order_by(RegistrationRequest.created_at, RegistrationRequest.id)).all()


def decide_request(session: Session, request_id: int, status: str) -> RegistrationRequest:
    """Approve or reject. The identity and shop are set up separately."""
    request = session.get(RegistrationRequest, request_id)
    if request is None:
        raise NotFoundError("Registration request not found")
    if request.status != "pending":
        raise ConflictError(f"Registration request already {request.status}")
    if status == "pending":
        raise ConflictError("Registration request is already pending")

    request.status = status
    session.add(request)
    session.commit()
    session.refresh(request)
    logger.info("Registration request %s %s", request.id, status)
    return request
