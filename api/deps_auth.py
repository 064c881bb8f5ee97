"""
Unified authentication dependency for system (scheduled job) endpoints.

Supports dual-mode auth:
- X-Admin-Secret header (cron / automation)
- JWT Bearer token of a super_admin account (platform console)
"""
from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from auth import get_current_account, get_db
from models import UserAccount
from config import settings
from utils.audit import record_metric

# HTTP Bearer security (for JWT extraction)
security = HTTPBearer(auto_error=False)


async def get_system_caller(
    request: Request,
    x_admin_secret: str | None = Header(default=None, alias="X-Admin-Secret"),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> dict:
    """
    Authenticate a caller of /api/internal/* endpoints.

    Auth flow:
    1. If X-Admin-Secret header present and valid → access granted
    2. Otherwise → JWT validation via get_current_account, role super_admin

    Returns:
        dict with keys: role, source ("secret" | "jwt"), id (account id or None)

    Raises:
        HTTPException:
            - 401 if no valid auth provided
            - 403 if JWT valid but account is not super_admin
    """
    if x_admin_secret is not None:
        ok = (
            settings.INTERNAL_ADMIN_SECRET is not None
            and x_admin_secret == settings.INTERNAL_ADMIN_SECRET
        )
        record_metric(
            "auth.system",
            fields={"path": request.url.path, "method": request.method},
            outcome="accepted" if ok else "rejected",
        )
        if ok:
            return {"role": "system", "source": "secret", "id": None}
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid X-Admin-Secret header",
        )

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required (JWT or X-Admin-Secret)",
        )

    try:
        account: UserAccount = await get_current_account(credentials=credentials, db=db)
    except HTTPException as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Authentication required (JWT or X-Admin-Secret): {exc.detail}",
        ) from exc

    if account.role != "super_admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Super admin role required (current role: {account.role})",
        )

    return {"role": "super_admin", "source": "jwt", "id": account.id}
