"""JWT token utilities and dependencies."""
import os
import secrets
import jwt
import bcrypt
from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from db import SessionLocal
from models import UserAccount, RefreshToken, Manager, Worker

# Configuration
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "CHANGE_THIS_IN_PRODUCTION_12345678901234567890")
JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 15
REFRESH_TOKEN_EXPIRE_DAYS = 7

# HTTP Bearer security
security = HTTPBearer()


def get_db():
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def hash_password(password: str) -> str:
    """Hash password using bcrypt (cost 12)."""
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Verify password against bcrypt hash."""
    return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))


def create_access_token(
    account_id: int,
    role: str,
    email: str,
    organization_id: Optional[int],
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create JWT access token."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    expire = datetime.now(timezone.utc) + expires_delta

    payload = {
        "sub": email,
        "user_id": account_id,
        "role": role,
        "org_id": organization_id,
        "type": "access",
        "exp": expire,
        "iat": datetime.now(timezone.utc)
    }

    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def create_refresh_token(account_id: int, db: Session) -> str:
    """Create and store refresh token in database (previous tokens are dropped)."""
    db.query(RefreshToken).filter(
        RefreshToken.account_id == account_id
    ).delete()
    db.flush()  # Ensure deletion is applied before insert

    expires_delta = timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS)
    expire = datetime.now(timezone.utc) + expires_delta

    payload = {
        "sub": str(account_id),
        "type": "refresh",
        "exp": expire,
        "iat": datetime.now(timezone.utc),
        # iat has 1s resolution; jti keeps back-to-back tokens unique
        "jti": os.urandom(8).hex(),
    }

    token = jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)

    db.add(RefreshToken(
        account_id=account_id,
        token=token,
        expires_at=expire,
        revoked=False
    ))
    db.commit()

    return token


def verify_token(token: str, token_type: str = "access") -> dict:
    """Verify JWT token and return payload."""
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])

        if payload.get("type") != token_type:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=f"Invalid token type (expected {token_type})"
            )

        return payload

    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expired"
        )
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token"
        )


async def get_current_account(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> UserAccount:
    """Get current authenticated account from JWT token."""
    payload = verify_token(credentials.credentials, token_type="access")

    account_id = int(payload["user_id"])
    account = db.query(UserAccount).filter(UserAccount.id == account_id).first()

    if not account:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account not found"
        )

    if not account.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account disabled"
        )

    return account


def require_role(*allowed_roles: str):
    """Dependency factory for role-based access control."""
    async def role_checker(account: UserAccount = Depends(get_current_account)):
        if account.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions (required: {', '.join(allowed_roles)})"
            )
        return account

    return role_checker


# Convenience dependencies
require_super_admin = require_role("super_admin")
require_manager = require_role("manager", "super_admin")
require_worker = require_role("worker")
require_any_role = require_role("super_admin", "manager", "worker")


def get_org_id(account: UserAccount) -> int:
    """Organization the caller acts for (super admins have none)."""
    if account.organization_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Account is not attached to an organization"
        )
    return account.organization_id


async def get_current_worker(
    account: UserAccount = Depends(require_worker),
    db: Session = Depends(get_db)
) -> Worker:
    """Worker profile of the calling account."""
    worker = db.query(Worker).filter(Worker.account_id == account.id).first()
    if not worker or not worker.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Worker profile not found or inactive"
        )
    return worker


def get_manager_profile(db: Session, account: UserAccount) -> Optional[Manager]:
    """Manager row for the account (None for super admins)."""
    return db.query(Manager).filter(Manager.account_id == account.id).first()


def generate_temporary_password() -> str:
    """Random password that satisfies the password policy."""
    return f"{secrets.token_urlsafe(9)}Aa1!"


def create_account(db: Session, email: str, role: str, organization_id: int) -> tuple[UserAccount, str]:
    """
    Add a login for a new manager/worker (caller commits).

    Returns:
        (account, temporary_password); the password is only ever shown once
    """
    if db.query(UserAccount.id).filter(UserAccount.email == email).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered"
        )
    temporary_password = generate_temporary_password()
    account = UserAccount(
        email=email,
        password_hash=hash_password(temporary_password),
        role=role,
        organization_id=organization_id,
        is_active=True,
        must_change_password=True,
        failed_attempts=0,
    )
    db.add(account)
    db.flush()
    return account, temporary_password
