"""Manager accounts of an organization."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from auth import create_account, get_db, get_org_id, require_manager
from models import Manager, UserAccount
from schemas_workers import ManagerCreatedOut, ManagerCreateIn, ManagerOut
from utils.audit import record_metric
from utils.capacity import CapacityError, ensure_capacity
from utils.validation import sanitize_input, validate_email, validate_name, validate_phone

router = APIRouter(prefix="/api/managers", tags=["managers"])


@router.get("", response_model=List[ManagerOut])
async def list_managers(
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db)
):
    return (
        db.query(Manager)
        .filter(Manager.organization_id == get_org_id(account))
        .order_by(Manager.name)
        .all()
    )


@router.post("", response_model=ManagerCreatedOut, status_code=status.HTTP_201_CREATED)
async def create_manager(
    data: ManagerCreateIn,
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db)
):
    """Add a manager; the login is created with a one-time temporary password."""
    org_id = get_org_id(account)
    name = sanitize_input(data.name)
    email = data.email.strip().lower()

    if not validate_name(name):
        raise HTTPException(status_code=400, detail="Invalid name")
    if not validate_email(email):
        raise HTTPException(status_code=400, detail="Invalid email address")
    if data.phone and not validate_phone(data.phone):
        raise HTTPException(status_code=400, detail="Invalid phone number")

    try:
        ensure_capacity(db, org_id, "managers")
    except CapacityError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Capacity limit reached")

    new_account, temporary_password = create_account(db, email, "manager", org_id)
    manager = Manager(
        account_id=new_account.id,
        organization_id=org_id,
        email=email,
        name=name,
        phone=data.phone,
    )
    db.add(manager)
    db.commit()
    db.refresh(manager)

    record_metric("manager.create", {"org_id": org_id, "manager_id": manager.id})
    out = ManagerOut.model_validate(manager).model_dump()
    return ManagerCreatedOut(**out, temporary_password=temporary_password)
