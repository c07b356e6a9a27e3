# backend/routes/auth.py
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from sqlalchemy import func
from utils.hashing import get_password_hash, verify_password
from utils.tokenJWT import create_access_token, get_current_user
from utils.audit import write_log
from utils.errors import ConflictError, UnauthorizedError
from models.users import User
from schemas import user as schemas
from database import get_db

router = APIRouter(prefix="/auth", tags=["Auth"])

def _email_taken(db: Session, email: str, exclude_id: int = None) -> bool:
    q = db.query(User).filter(func.lower(User.email) == email)
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    return q.first() is not None

# Register a new user
@router.post("/register", response_model=schemas.UserResponse, status_code=status.HTTP_201_CREATED)
def register(user: schemas.UserCreate, request: Request, db: Session = Depends(get_db)):
    # Normalize email input
    normalized_email = user.email.strip().lower()

    if _email_taken(db, normalized_email):
        write_log(db, user_id=None, action="REGISTER", resource="auth", status="FAIL",
                  request=request, meta={"email": normalized_email, "reason": "Email exists"})
        raise ConflictError("User with this email already exists")

    # Self-registration always yields a plain customer account
    new_user = User(
        email=normalized_email,
        password_hash=get_password_hash(user.password),
        name=user.name,
        role="user",
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    write_log(db, user_id=new_user.id, action="REGISTER", resource="auth",
              request=request, meta={"email": new_user.email})
    return new_user


# Authenticate user and issue JWT token
@router.post("/login", response_model=schemas.Token)
def login(payload: schemas.UserLogin, request: Request, db: Session = Depends(get_db)):
    email = payload.email.strip().lower()
    db_user = db.query(User).filter(User.email == email).first()

    # Validate credentials and log failure on error
    if not db_user or not verify_password(payload.password, db_user.password_hash):
        write_log(db, user_id=(db_user.id if db_user else None), action="LOGIN", resource="auth",
                  status="FAIL", request=request, meta={"email": email})
        raise UnauthorizedError("Invalid credentials")

    access_token = create_access_token({"sub": db_user.email, "role": db_user.role}, request.app.state.settings)

    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth",
              request=request, meta={"email": db_user.email})

    return {"access_token": access_token, "token_type": "bearer"}


# Retrieve current authenticated user details
@router.get("/me", response_model=schemas.UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user


# Update name, email and phone of the current user
@router.put("/me", response_model=schemas.UserResponse)
def update_profile(
    payload: schemas.ProfileUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    email = payload.email.strip().lower()
    if _email_taken(db, email, exclude_id=current_user.id):
        raise ConflictError("User with this email already exists")

    current_user.name = payload.name
    current_user.email = email
    current_user.phone = payload.phone
    db.commit()
    db.refresh(current_user)

    write_log(db, user_id=current_user.id, action="PROFILE_UPDATE", resource="auth", request=request)
    return current_user
