# barberqueue/routers/registrations_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from barberqueue.db import get_session
from barberqueue.schemas import (
    RegistrationCreate,
    RegistrationDecision,
    RegistrationPublic,
    RegistrationStatus,
)
from barberqueue.auth import get_current_user
from barberqueue.deps import require_role
from barberqueue.services import registration_service

router = APIRouter(
    prefix="/registration-requests",
    tags=["registrations"],
)


# no authentication: anyone can apply to become a barber
@router.post("", response_model=RegistrationPublic, status_code=201)
def submit_registration(
    request: RegistrationCreate,
    session: Session = Depends(get_session),
):
    return registration_service.submit_request(session, **request.model_dump())


@router.get("", response_model=List[RegistrationPublic])
def list_registrations(
    status: Optional[RegistrationStatus] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    return registration_service.list_requests(session, status.value if status else None)


@router.patch("/{request_id}", response_model=RegistrationPublic)
def decide_registration(
    request_id: int,
    decision: RegistrationDecision,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    return registration_service.decide_request(session, request_id, decision.status.value)
