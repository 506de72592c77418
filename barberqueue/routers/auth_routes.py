# barberqueue/routers/auth_routes.py

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel import Session

from barberqueue.db import get_session
from barberqueue.schemas import Token
from barberqueue.auth import create_access_token
from barberqueue.services import identity_service

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


# Swagger's OAuth2 password flow sends the email in "username"
@router.post("/login", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: Session = Depends(get_session),
):
    user = identity_service.authenticate(session, form_data.username, form_data.password)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return Token(access_token=create_access_token({"sub": user.email}))
