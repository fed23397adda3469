"""Auth: register, login, logout, current user.

SECURITY FEATURES:
- Password hashing with bcrypt
- Password strength validation
- httpOnly, Secure, SameSite cookies
"""
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from khatabook.api.deps import get_db, get_current_user
from khatabook.core.audit import AuditLog
from khatabook.core.security import verify_password, get_password_hash, create_access_token
from khatabook.core.config import settings
from khatabook.models.user import User
from khatabook.schemas.user import UserCreate, UserLogin, UserResponse, Token

router = APIRouter()


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.post("/register", response_model=UserResponse)
def register(data: UserCreate, request: Request, db: Session = Depends(get_db)):
    """
    Register new user with password strength validation.

    Password requirements:
    - At least MIN_PASSWORD_LENGTH characters
    - At least one number
    """
    email = data.email.lower()
    if db.query(User).filter(User.email == email).first():
        AuditLog.log_authentication("register", email, _client_ip(request), False, reason="Email taken")
        raise HTTPException(status_code=400, detail="Email already registered")

    if len(data.password) < settings.MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters"
        )

    if settings.REQUIRE_NUMBERS and not any(c.isdigit() for c in data.password):
        raise HTTPException(
            status_code=400,
            detail="Password must contain at least one number"
        )

    user = User(email=email, name=data.name.strip(), hashed_password=get_password_hash(data.password))
    db.add(user)
    db.commit()
    db.refresh(user)
    AuditLog.log_authentication("register", email, _client_ip(request), True)
    return user


@router.post("/login", response_model=Token)
def login(data: UserLogin, request: Request, response: Response, db: Session = Depends(get_db)):
    """
    Login and set token in httpOnly cookie. The token is also returned
    in the body for API clients.

    Generic error message to prevent user enumeration.
    """
    email = data.email.lower()
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(data.password, user.hashed_password):
        AuditLog.log_authentication("login", email, _client_ip(request), False, reason="Invalid credentials")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token = create_access_token(subject=str(user.id))

    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite=settings.SAME_SITE_COOKIE,
    )
    AuditLog.log_authentication("login", email, _client_ip(request), True)
    return Token(access_token=token)


@router.post("/logout")
def logout(request: Request, response: Response, current_user: User = Depends(get_current_user)):
    """Logout by clearing httpOnly cookie."""
    response.delete_cookie(
        key=settings.AUTH_COOKIE_NAME,
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite=settings.SAME_SITE_COOKIE,
    )
    AuditLog.log_authentication("logout", current_user.email, _client_ip(request), True)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    """Get current authenticated user."""
    return current_user
