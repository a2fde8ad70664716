import secrets
from datetime import datetime, timedelta

import bcrypt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from sleeptrack.core.config import settings
from sleeptrack.core.db import get_db
from sleeptrack.models.auth_token import AuthToken
from sleeptrack.models.user import User

BCRYPT_ROUNDS = 12

bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def issue_token(db: Session, user: User) -> AuthToken:
    row = AuthToken(
        user_id=user.id,
        token=secrets.token_urlsafe(32),
        expires_at=datetime.utcnow() + timedelta(hours=settings.SESSION_TTL_HOURS),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def _lookup_token(db: Session, credentials: HTTPAuthorizationCredentials | None) -> AuthToken:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Unauthorized")

    row = db.query(AuthToken).filter(AuthToken.token == credentials.credentials).one_or_none()
    if row is None or row.expires_at <= datetime.utcnow():
        raise HTTPException(status_code=401, detail="Unauthorized")
    return row


def get_current_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthToken:
    return _lookup_token(db, credentials)


def get_current_user(
    token: AuthToken = Depends(get_current_token),
    db: Session = Depends(get_db),
) -> User:
    user = db.get(User, token.user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user
