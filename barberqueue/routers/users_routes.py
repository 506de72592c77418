# barberqueue/routers/users_routes.py

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from barberqueue.db import get_session
from barberqueue.schemas import UserCreate, UserPublic, UserRole, ProfilePublic, ProfileUpdate
from barberqueue.auth import get_current_user
from barberqueue.services import identity_service

router = APIRouter(
    tags=["users"],
)


@router.get("/me", response_model=UserPublic)
def me(current_user: dict = Depends(get_current_user)):
    return {
        "id": current_user["id"],
        "email": current_user["email"],
        "role": current_user["role"],
    }


@router.post("/users", status_code=201, response_model=UserPublic)
def create_user(
    user: UserCreate,
    session: Session = Depends(get_session),
):
    if user.role == UserRole.admin:
        raise HTTPException(status_code=403, detail="Admin accounts cannot self-register")

    # identity and profile are created together
    db_user = identity_service.create_identity(
        session,
        email=user.email,
        password=user.password,
        name=user.name,
        phone=user.phone,
        role=user.role.value if user.role is not None else None,
    )
    profile = identity_service.get_profile(session, db_user.id)

    return {
        "id": db_user.id,
        "email": db_user.email,
        "role": profile.role if profile is not None else "customer",
    }


@router.get("/profiles/me", response_model=ProfilePublic)
def get_my_profile(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return identity_service.ensure_profile(session, current_user["id"])


@router.patch("/profiles/me", response_model=ProfilePublic)
def update_my_profile(
    changes: ProfileUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return identity_service.update_profile(
        session, current_user["id"], name=changes.name, phone=changes.phone
    )
