# sleeptrack/api/v1/auth.py

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from sleeptrack.core.db import get_db
from sleeptrack.core.security import (
    get_current_token,
    hash_password,
    issue_token,
    verify_password,
)
from sleeptrack.models.auth_token import AuthToken
from sleeptrack.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# ---------- Pydantic schemas ----------

class SignupIn(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None


class SigninIn(BaseModel):
    email: str
    password: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime


# ---------- Endpoints ----------

@router.post("/signup", status_code=201)
def signup(payload: SignupIn, db: Session = Depends(get_db)):
    if not payload.name or not payload.email or not payload.password:
        raise HTTPException(status_code=400, detail="Missing required fields")

    email = payload.email.strip().lower()
    if db.query(User).filter(User.email == email).one_or_none():
        raise HTTPException(status_code=400, detail="User already exists")

    user = User(name=payload.name, email=email, password_hash=hash_password(payload.password))
    db.add(user)
    db.commit()
    logger.info("Created user %s", user.id)

    return {"message": "User created successfully"}


@router.post("/signin", response_model=TokenOut)
def signin(payload: SigninIn, db: Session = Depends(get_db)):
    """
    Exchange email + password for a bearer token.
    """
    user = db.query(User).filter(User.email == payload.email.strip().lower()).one_or_none()
    if user is None or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    row = issue_token(db, user)
    return TokenOut(access_token=row.token, expires_at=row.expires_at)


@router.post("/signout")
def signout(token: AuthToken = Depends(get_current_token), db: Session = Depends(get_db)):
    db.query(AuthToken).filter(AuthToken.id == token.id).delete()
    db.commit()
    return {"message": "Signed out"}
