"""Organization profile, seat capacity and subscription plan endpoints."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from auth import get_db, get_org_id, require_any_role, require_manager, require_super_admin
from models import Manager, Organization, SubscriptionUsage, UserAccount, Worker
from payroll_rules import RulesError, upgrade_plans
from schemas_organizations import (
    CapacityOut,
    OrganizationOut,
    OrganizationSummaryOut,
    OrganizationUpdateIn,
    PlanOut,
    SubscriptionUsageOut,
    UpgradeIn,
)
from utils.capacity import RESOURCES, check_capacity, upgrade_subscription_plan
from utils.validation import sanitize_input, validate_email, validate_phone

router = APIRouter(prefix="/api", tags=["organizations"])


def _get_org(db: Session, account: UserAccount) -> Organization:
    org = db.get(Organization, get_org_id(account))
    if not org:
        raise HTTPException(status_code=404, detail="Organization not found")
    return org


@router.get("/organization", response_model=OrganizationOut)
def get_organization(
    db: Session = Depends(get_db),
    account: UserAccount = Depends(require_any_role),
):
    return _get_org(db, account)


@router.put("/organization", response_model=OrganizationOut)
def update_organization(
    payload: OrganizationUpdateIn,
    db: Session = Depends(get_db),
    account: UserAccount = Depends(require_manager),
):
    org = _get_org(db, account)
    data = payload.model_dump(exclude_unset=True)

    if "email" in data and data["email"] and not validate_email(data["email"]):
        raise HTTPException(status_code=400, detail="Invalid email address")
    if "phone" in data and data["phone"] and not validate_phone(data["phone"]):
        raise HTTPException(status_code=400, detail="Invalid phone number")

    for field in ("name", "company_number", "vat_number", "address"):
        if field in data and data[field] is not None:
            data[field] = sanitize_input(data[field])
    if "name" in data and len(data["name"] or "") < 2:
        raise HTTPException(status_code=400, detail="Organization name is required")

    for field, value in data.items():
        setattr(org, field, value)
    db.commit()
    db.refresh(org)
    return org


@router.get("/organization/capacity", response_model=CapacityOut)
def get_capacity(
    resource: str = Query(..., description="workers | managers"),
    db: Session = Depends(get_db),
    account: UserAccount = Depends(require_manager),
):
    if resource not in RESOURCES:
        raise HTTPException(status_code=400, detail=f"resource must be one of: {', '.join(RESOURCES)}")
    return CapacityOut(resource=resource, **check_capacity(db, get_org_id(account), resource))


@router.get("/organization/subscription/plans", response_model=List[PlanOut])
def list_plans(account: UserAccount = Depends(require_manager)):
    return upgrade_plans()


@router.post("/organization/subscription/upgrade", response_model=SubscriptionUsageOut)
def upgrade_subscription(
    payload: UpgradeIn,
    db: Session = Depends(get_db),
    account: UserAccount = Depends(require_manager),
):
    try:
        return upgrade_subscription_plan(db, get_org_id(account), payload.plan_type)
    except (RulesError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/organization/subscription/history", response_model=List[SubscriptionUsageOut])
def subscription_history(
    db: Session = Depends(get_db),
    account: UserAccount = Depends(require_manager),
):
    return (
        db.query(SubscriptionUsage)
        .filter(SubscriptionUsage.organization_id == get_org_id(account))
        .order_by(SubscriptionUsage.started_at.desc(), SubscriptionUsage.id.desc())
        .all()
    )


@router.get("/super-admin/organizations", response_model=List[OrganizationSummaryOut])
def list_organizations(
    db: Session = Depends(get_db),
    account: UserAccount = Depends(require_super_admin),
):
    """All tenants with their seat usage (platform console)."""
    worker_counts = dict(
        db.query(Worker.organization_id, func.count(Worker.id))
        .filter(Worker.is_active.is_(True))
        .group_by(Worker.organization_id)
        .all()
    )
    manager_counts = dict(
        db.query(Manager.organization_id, func.count(Manager.id))
        .group_by(Manager.organization_id)
        .all()
    )
    return [
        OrganizationSummaryOut(
            id=org.id,
            name=org.name,
            subscription_status=org.subscription_status,
            worker_count=worker_counts.get(org.id, 0),
            manager_count=manager_counts.get(org.id, 0),
            max_workers=org.max_workers,
            max_managers=org.max_managers,
            created_at=org.created_at,
        )
        for org in db.query(Organization).order_by(Organization.created_at.desc(), Organization.id.desc()).all()
    ]
