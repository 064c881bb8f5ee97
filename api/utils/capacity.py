"""Organization seat limits and subscription plan changes."""
from __future__ import annotations

from datetime import timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from config import settings
from models import Manager, Organization, SubscriptionUsage, Worker
from payroll_rules import get_plan
from utils.audit import record_metric
from utils.uk_time import utcnow

RESOURCES = ("workers", "managers")


class CapacityError(Exception):
    """Organization has no free seat for the requested resource."""

    def __init__(self, resource: str, capacity: dict):
        super().__init__(f"Capacity limit reached for {resource}")
        self.resource = resource
        self.capacity = capacity


def count_resource(db: Session, organization_id: int, resource: str) -> int:
    if resource == "workers":
        return db.query(func.count(Worker.id)).filter(
            Worker.organization_id == organization_id,
            Worker.is_active.is_(True),
        ).scalar() or 0
    if resource == "managers":
        return db.query(func.count(Manager.id)).filter(
            Manager.organization_id == organization_id
        ).scalar() or 0
    raise ValueError(f"Unknown resource: {resource}")


def check_capacity(db: Session, organization_id: int, resource: str) -> dict:
    """
    Seat usage for "workers" or "managers".

    Returns:
        {"can_create", "current", "limit", "remaining"}; limit/remaining are
        None for unlimited plans.
    """
    org = db.get(Organization, organization_id)
    if org is None:
        raise ValueError(f"Organization {organization_id} not found")

    current = count_resource(db, organization_id, resource)
    limit = org.max_workers if resource == "workers" else org.max_managers
    if limit is None:
        return {"can_create": True, "current": current, "limit": None, "remaining": None}
    return {
        "can_create": current < limit,
        "current": current,
        "limit": limit,
        "remaining": max(limit - current, 0),
    }


def ensure_capacity(db: Session, organization_id: int, resource: str) -> dict:
    """check_capacity() that raises CapacityError when full."""
    capacity = check_capacity(db, organization_id, resource)
    if not capacity["can_create"]:
        record_metric("capacity.denied", {"org_id": organization_id, "resource": resource, **capacity}, outcome="denied")
        raise CapacityError(resource, capacity)
    return capacity


def start_trial(db: Session, org: Organization) -> SubscriptionUsage:
    """Put a new organization on the trial plan (caller commits)."""
    plan = get_plan("trial")
    org.subscription_status = "trial"
    org.trial_ends_at = utcnow() + timedelta(days=settings.TRIAL_DAYS)
    org.max_managers = plan["max_managers"]
    org.max_workers = plan["max_workers"]
    usage = SubscriptionUsage(
        organization_id=org.id,
        plan_type="trial",
        max_managers=plan["max_managers"],
        max_workers=plan["max_workers"],
        current_manager_count=0,
        current_worker_count=0,
        started_at=utcnow(),
        is_active=True,
    )
    db.add(usage)
    return usage


def upgrade_subscription_plan(db: Session, organization_id: int, plan_type: str) -> SubscriptionUsage:
    """
    Move an organization to another plan.

    Ends the active usage row, opens a new one with the current seat
    counts, and copies the plan limits onto the organization.

    Raises:
        payroll_rules.RulesError: unknown plan_type
        ValueError: organization missing or plan_type is "trial"
    """
    if plan_type == "trial":
        raise ValueError("Cannot move back to the trial plan")
    plan = get_plan(plan_type)
    org = db.get(Organization, organization_id)
    if org is None:
        raise ValueError(f"Organization {organization_id} not found")

    now = utcnow()
    db.query(SubscriptionUsage).filter(
        SubscriptionUsage.organization_id == organization_id,
        SubscriptionUsage.is_active.is_(True),
    ).update({"is_active": False, "ended_at": now}, synchronize_session=False)

    usage = SubscriptionUsage(
        organization_id=organization_id,
        plan_type=plan_type,
        max_managers=plan["max_managers"],
        max_workers=plan["max_workers"],
        current_manager_count=count_resource(db, organization_id, "managers"),
        current_worker_count=count_resource(db, organization_id, "workers"),
        started_at=now,
        is_active=True,
    )
    db.add(usage)

    org.max_managers = plan["max_managers"]
    org.max_workers = plan["max_workers"]
    org.subscription_status = plan_type
    db.commit()
    db.refresh(usage)

    record_metric("subscription.upgrade", {"org_id": organization_id, "plan_type": plan_type})
    return usage
