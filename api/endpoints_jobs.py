"""Job site endpoints (geofenced work locations)."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from auth import get_db, get_org_id, require_any_role, require_manager
from models import Job, UserAccount
from schemas_jobs import JobCreateIn, JobOut, JobUpdateIn
from utils.audit import log_action
from utils.postcodes import PostcodeLookupError, PostcodeRateLimited, format_postcode, lookup_postcode
from utils.validation import sanitize_input

router = APIRouter(prefix="/api/jobs", tags=["jobs"])


def _get_job(db: Session, job_id: int, org_id: int) -> Job:
    job = db.query(Job).filter(Job.id == job_id, Job.organization_id == org_id).first()
    if not job:
        raise HTTPException(status_code=404, detail=f"Job {job_id} not found")
    return job


def _geocode(db: Session, job: Job) -> None:
    """Fill missing coordinates from the job's postcode."""
    if not job.postcode or (job.latitude is not None and job.longitude is not None):
        return
    try:
        found = lookup_postcode(db, job.postcode)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PostcodeRateLimited as e:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(e))
    except PostcodeLookupError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    if found is None:
        raise HTTPException(status_code=400, detail=f"Postcode {job.postcode} not found")
    job.postcode = found["postcode"]
    job.latitude = found["latitude"]
    job.longitude = found["longitude"]


@router.get("", response_model=List[JobOut])
def list_jobs(
    include_inactive: bool = Query(False),
    account: UserAccount = Depends(require_any_role),
    db: Session = Depends(get_db)
):
    """Workers always get active jobs only."""
    query = db.query(Job).filter(Job.organization_id == get_org_id(account))
    if account.role == "worker" or not include_inactive:
        query = query.filter(Job.is_active.is_(True))
    return query.order_by(Job.name, Job.id).all()


@router.post("", response_model=JobOut, status_code=status.HTTP_201_CREATED)
def create_job(
    data: JobCreateIn,
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db)
):
    fields = data.model_dump()
    fields["name"] = sanitize_input(fields["name"])
    fields["code"] = sanitize_input(fields["code"])
    if fields.get("address") is not None:
        fields["address"] = sanitize_input(fields["address"])
    if fields.get("postcode"):
        fields["postcode"] = format_postcode(fields["postcode"])
    if not fields["name"] or not fields["code"]:
        raise HTTPException(status_code=400, detail="Job name and code are required")

    job = Job(organization_id=get_org_id(account), is_active=True, **fields)
    _geocode(db, job)
    db.add(job)
    db.commit()
    db.refresh(job)
    return job


@router.put("/{job_id}", response_model=JobOut)
def update_job(
    job_id: int,
    data: JobUpdateIn,
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db)
):
    job = _get_job(db, job_id, get_org_id(account))
    changes = data.model_dump(exclude_unset=True)

    for field in ("name", "code", "address"):
        if changes.get(field) is not None:
            changes[field] = sanitize_input(changes[field])
    if changes.get("postcode"):
        changes["postcode"] = format_postcode(changes["postcode"])
        # A new postcode without new coordinates means the site moved
        if "latitude" not in changes and "longitude" not in changes and changes["postcode"] != job.postcode:
            changes["latitude"] = changes["longitude"] = None

    for field, value in changes.items():
        if value is None and field in ("name", "code", "geofence_radius", "geofence_enabled", "is_active"):
            continue
        setattr(job, field, value)

    _geocode(db, job)
    db.commit()
    db.refresh(job)
    return job


@router.delete("/{job_id}")
def deactivate_job(
    job_id: int,
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db)
):
    job = _get_job(db, job_id, get_org_id(account))
    job.is_active = False
    db.commit()
    log_action(account.id, "job.deactivate", {"job_id": job.id})
    return {"status": "ok", "id": job.id, "is_active": False}
