"""Authentication endpoints: login, token rotation, password change, signup."""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from datetime import timedelta
from models import UserAccount, RefreshToken, Manager, Worker, Organization
from schemas_auth import (
    PasswordLoginIn,
    TokenResponse,
    TokenRefreshIn,
    CurrentUserOut,
    AccountOut,
    ChangePasswordIn,
    RegisterOrganizationIn,
)
from auth import (
    get_db,
    hash_password,
    verify_password,
    create_access_token,
    create_refresh_token,
    verify_token,
    get_current_account,
    ACCESS_TOKEN_EXPIRE_MINUTES,
)
from utils.audit import record_metric
from utils.capacity import start_trial
from utils.uk_time import as_utc, utcnow
from utils.validation import (
    password_strength,
    sanitize_input,
    validate_email,
    validate_name,
    validate_password,
    validate_phone,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])

MAX_FAILED_ATTEMPTS = 5
LOCKOUT_MINUTES = 15


def _profile(db: Session, account: UserAccount):
    """Manager/Worker row behind an account (None for super admins)."""
    if account.role == "manager":
        return db.query(Manager).filter(Manager.account_id == account.id).first()
    if account.role == "worker":
        return db.query(Worker).filter(Worker.account_id == account.id).first()
    return None


def _issue_tokens(db: Session, account: UserAccount) -> TokenResponse:
    profile = _profile(db, account)
    access_token = create_access_token(account.id, account.role, account.email, account.organization_id)
    refresh_token = create_refresh_token(account.id, db)
    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        role=account.role,
        user_id=account.id,
        organization_id=account.organization_id,
        name=profile.name if profile else account.email,
        must_change_password=account.must_change_password,
    )


@router.post("/login", response_model=TokenResponse)
async def password_login(credentials: PasswordLoginIn, db: Session = Depends(get_db)):
    """
    Authenticate using email/password.

    Implements brute-force protection (5 attempts -> 15 min lockout).
    """
    account = db.query(UserAccount).filter(
        UserAccount.email == credentials.email.strip().lower()
    ).first()

    if not account:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    locked_until = as_utc(account.locked_until)
    if locked_until and locked_until > utcnow():
        remaining = (locked_until - utcnow()).total_seconds()
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Account locked for {int(remaining / 60)} more minutes"
        )
    if locked_until:
        # Lock expired: start a fresh attempt window
        account.failed_attempts = 0
        account.locked_until = None

    if not verify_password(credentials.password, account.password_hash):
        account.failed_attempts = (account.failed_attempts or 0) + 1

        if account.failed_attempts >= MAX_FAILED_ATTEMPTS:
            account.locked_until = utcnow() + timedelta(minutes=LOCKOUT_MINUTES)
            db.commit()
            record_metric("auth.login", {"account_id": account.id}, outcome="locked")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Account locked due to too many failed attempts ({LOCKOUT_MINUTES} min)"
            )

        db.commit()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid credentials ({MAX_FAILED_ATTEMPTS - account.failed_attempts} attempts remaining)"
        )

    if not account.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account disabled"
        )

    account.failed_attempts = 0
    account.locked_until = None
    db.commit()

    record_metric("auth.login", {"account_id": account.id, "role": account.role}, outcome="ok")
    return _issue_tokens(db, account)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_access_token(data: TokenRefreshIn, db: Session = Depends(get_db)):
    """Exchange a refresh token for a new access + refresh pair (old one is revoked)."""
    payload = verify_token(data.refresh_token, token_type="refresh")
    account_id = int(payload["sub"])

    token_obj = db.query(RefreshToken).filter(
        RefreshToken.token == data.refresh_token,
        RefreshToken.account_id == account_id,
        RefreshToken.revoked.is_(False)
    ).first()

    if not token_obj:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or revoked refresh token"
        )

    if as_utc(token_obj.expires_at) < utcnow():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token expired"
        )

    account = db.get(UserAccount, account_id)
    if not account or not account.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account disabled"
        )

    token_obj.revoked = True
    db.commit()

    return _issue_tokens(db, account)


@router.get("/me", response_model=CurrentUserOut)
async def get_current_user(
    account: UserAccount = Depends(get_current_account),
    db: Session = Depends(get_db)
):
    """Get current authenticated account."""
    profile = _profile(db, account)
    return CurrentUserOut(
        account=AccountOut.model_validate(account),
        name=profile.name if profile else account.email,
        profile_id=profile.id if profile else None,
    )


@router.post("/logout")
async def logout(
    account: UserAccount = Depends(get_current_account),
    db: Session = Depends(get_db)
):
    """Revoke every refresh token of the caller."""
    db.query(RefreshToken).filter(
        RefreshToken.account_id == account.id,
        RefreshToken.revoked.is_(False)
    ).update({"revoked": True}, synchronize_session=False)
    db.commit()

    return {"status": "ok", "message": "Logged out successfully"}


@router.post("/change-password")
async def change_password(
    data: ChangePasswordIn,
    account: UserAccount = Depends(get_current_account),
    db: Session = Depends(get_db)
):
    """Change own password (clears the must_change_password flag)."""
    if not verify_password(data.current_password, account.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect"
        )

    ok, errors = validate_password(data.new_password)
    if not ok:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="; ".join(errors)
        )

    account.password_hash = hash_password(data.new_password)
    account.must_change_password = False
    db.commit()

    return {"status": "ok", "strength": password_strength(data.new_password)}


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register_organization(data: RegisterOrganizationIn, db: Session = Depends(get_db)):
    """
    Sign up a new organization.

    Creates the organization on a trial plan, its first manager account and
    the initial subscription usage row in one transaction.
    """
    org_name = sanitize_input(data.organization_name)
    manager_name = sanitize_input(data.manager_name)
    email = data.email.strip().lower()

    if len(org_name) < 2:
        raise HTTPException(status_code=400, detail="Organization name is required")
    if not validate_name(manager_name):
        raise HTTPException(status_code=400, detail="Invalid name")
    if not validate_email(email):
        raise HTTPException(status_code=400, detail="Invalid email address")
    if data.phone and not validate_phone(data.phone):
        raise HTTPException(status_code=400, detail="Invalid phone number")
    ok, errors = validate_password(data.password)
    if not ok:
        raise HTTPException(status_code=400, detail="; ".join(errors))

    if db.query(UserAccount.id).filter(UserAccount.email == email).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered"
        )

    org = Organization(
        name=org_name,
        company_number=sanitize_input(data.company_number) or None,
        email=email,
        phone=data.phone,
    )
    db.add(org)
    db.flush()
    start_trial(db, org)

    account = UserAccount(
        email=email,
        password_hash=hash_password(data.password),
        role="manager",
        organization_id=org.id,
        is_active=True,
        must_change_password=False,
        failed_attempts=0,
    )
    db.add(account)
    db.flush()
    db.add(Manager(
        account_id=account.id,
        organization_id=org.id,
        email=email,
        name=manager_name,
        phone=data.phone,
    ))
    db.commit()
    db.refresh(account)

    record_metric("organization.register", {"org_id": org.id})
    return _issue_tokens(db, account)
