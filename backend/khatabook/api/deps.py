"""FastAPI dependencies: DB session and current user from JWT.

SECURITY: Supports JWT from:
1. Authorization header (for API clients)
2. httpOnly cookie (for web frontend)
3. `token` query parameter (WebSocket handshakes only)
"""
from datetime import datetime
from decimal import Decimal
from typing import Generator, Optional

from fastapi import Depends, HTTPException, Query, status, Request, WebSocket, WebSocketException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from khatabook.core.config import settings
from khatabook.db.session import SessionLocal
from khatabook.core.security import decode_access_token
from khatabook.models.transaction import TransactionType, PaymentMethod
from khatabook.models.user import User
from khatabook.schemas.transaction import TransactionFilters

security = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _user_id_from_token(token: Optional[str]) -> Optional[int]:
    if not token:
        return None
    sub = decode_access_token(token)
    if not sub:
        return None
    try:
        return int(sub)
    except ValueError:
        return None


def get_current_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> int:
    """
    Extract user ID from JWT token.
    Header takes precedence over cookie.
    """
    token = None

    if credentials:
        token = credentials.credentials
    elif settings.AUTH_COOKIE_NAME in request.cookies:
        token = request.cookies[settings.AUTH_COOKIE_NAME]

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = _user_id_from_token(token)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id


def get_current_user(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> User:
    """Load current user from DB."""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def get_ws_user(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    db: Session = Depends(get_db),
) -> User:
    """WebSocket variant: token from query string, falling back to the auth cookie."""
    token = token or websocket.cookies.get(settings.AUTH_COOKIE_NAME)
    user_id = _user_id_from_token(token)
    user = db.query(User).filter(User.id == user_id).first() if user_id is not None else None
    if not user:
        raise WebSocketException(code=status.WS_1008_POLICY_VIOLATION, reason="Not authenticated")
    return user


def transaction_filters(
    customer_id: Optional[int] = Query(None),
    type: Optional[TransactionType] = Query(None),
    payment_method: Optional[PaymentMethod] = Query(None),
    min_amount: Optional[Decimal] = Query(None, ge=0),
    max_amount: Optional[Decimal] = Query(None, ge=0),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
) -> TransactionFilters:
    """Report/list filters from the query string. Omitted params do not filter."""
    return TransactionFilters(
        customer_id=customer_id,
        type=type,
        payment_method=payment_method,
        min_amount=min_amount,
        max_amount=max_amount,
        date_from=date_from,
        date_to=date_to,
    )
