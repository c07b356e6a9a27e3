# utils/tokenJWT.py
from jose import jwt, JWTError
from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from config import Settings
from database import get_db
from models.users import User
from utils.errors import ForbiddenError, UnauthorizedError

# auto_error=False so guests reach optional-auth routes
bearer_scheme = HTTPBearer(auto_error=False)

# Generate a new JWT access token
def create_access_token(data: dict, settings: Settings, expires_delta: timedelta = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def _user_from_token(token: str, settings: Settings, db: Session) -> Optional[User]:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    email = payload.get("sub")
    # Ensure email is present in the token payload
    if email is None:
        return None
    return db.query(User).filter(User.email == email).first()

# Resolve the session user if a valid bearer token was sent, otherwise None (guest)
def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    if credentials is None:
        return None
    return _user_from_token(credentials.credentials, request.app.state.settings, db)

# Retrieve the currently authenticated user, 401 when there is none
def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise UnauthorizedError()
    return user

def is_admin(user: Optional[User]) -> bool:
    return bool(user) and (user.role or "").lower() == "admin"

# Admin-only routes depend on this
def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not is_admin(current_user):
        raise ForbiddenError()
    return current_user
