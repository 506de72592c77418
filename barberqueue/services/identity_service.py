# barberqueue/services/identity_service.py

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from ..auth import hash_password, verify_password
from ..config import settings
from ..errors import ConflictError, NotFoundError, ProfileCreationError
from ..models import User, Profile

logger = logging.getLogger(__name__)

ROLES = ("customer", "barber", "admin")


def build_profile(user_id: int, name: Optional[str] = None, phone: Optional[str] = None,
                  role: Optional[str] = None) -> Profile:
    if role is None:
        role = "customer"
    if role not in ROLES:
        raise ValueError(f"invalid role {role!r}")
    return Profile(user_id=user_id, name=name or "", phone=phone or "", role=role)


def create_identity(
    session: Session,
    email: str,
    password: str,
    name: Optional[str] = None,
    phone: Optional[str] = None,
    role: Optional[str] = None,
    policy: Optional[str] = None,
) -> User:
    """
    Create an identity and its profile.

    With policy "abort" a failed profile insert rolls the identity back and
    raises ProfileCreationError. With "ignore" the identity is kept without a
    profile and the failure is only logged.
    """
    policy = policy or settings.profile_failure_policy

    existing = session.exec(
        select(User).where(User.email == email)
    ).first()
    if existing is not None:
        raise ConflictError("Email already registered")

    password_hash = hash_password(password)
    user = User(email=email, password_hash=password_hash)
    session.add(user)
    try:
        session.flush()  # fills user.id
    except IntegrityError:
        session.rollback()
        raise ConflictError("Email already registered")

    try:
        if get_profile(session, user.id) is None:
            session.add(build_profile(user.id, name, phone, role))
        session.commit()
    except (SQLAlchemyError, ValueError) as exc:
        session.rollback()
        if policy == "abort":
            logger.error("Profile creation failed for %s, identity rolled back: %s", email, exc)
            raise ProfileCreationError("Could not create profile") from exc

        logger.warning("Profile creation failed for %s, keeping identity without profile: %s", email, exc)
        user = User(email=email, password_hash=password_hash)
        session.add(user)
        session.commit()

    session.refresh(user)
    logger.info("Created identity %s (id=%s)", email, user.id)
    return user


def get_profile(session: Session, user_id: int) -> Optional[Profile]:
    return session.exec(
        select(Profile).where(Profile.user_id == user_id)
    ).first()


def ensure_profile(session: Session, user_id: int) -> Profile:
    """Return the identity's profile, creating a default one if it is missing."""
    profile = get_profile(session, user_id)
    if profile is not None:
        return profile

    if session.get(User, user_id) is None:
        raise NotFoundError("User not found")

    profile = build_profile(user_id)
    session.add(profile)
    try:
        session.commit()
    except IntegrityError:
        # created concurrently; the unique user_id keeps it to one row
        session.rollback()
        return get_profile(session, user_id)

    session.refresh(profile)
    logger.info("Created missing profile for user %s", user_id)
    return profile


def update_profile(session: Session, user_id: int, name: Optional[str] = None,
                   phone: Optional[str] = None) -> Profile:
    profile = ensure_profile(session, user_id)
    if name is not None:
        profile.name = name
    if phone is not None:
        profile.phone = phone
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


def authenticate(session: Session, email: str, password: str) -> Optional[User]:
    user = session.exec(
        select(User).where(User.email == email)
    ).first()
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Failed login for %s", email)
        return None
    return user
