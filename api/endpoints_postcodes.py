"""UK postcode lookup (postcodes.io, cached)."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from auth import get_db, require_any_role
from models import UserAccount
from schemas_jobs import PostcodeOut
from utils.postcodes import PostcodeLookupError, PostcodeRateLimited, lookup_postcode

router = APIRouter(prefix="/api/postcodes", tags=["postcodes"])


@router.get("/{postcode}", response_model=PostcodeOut)
def get_postcode(
    postcode: str,
    account: UserAccount = Depends(require_any_role),
    db: Session = Depends(get_db),
):
    """
    Errors:
        400 invalid format, 404 unknown postcode,
        429 upstream rate limit, 502 upstream failure
    """
    try:
        result = lookup_postcode(db, postcode)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PostcodeRateLimited as e:
        raise HTTPException(status_code=429, detail=str(e))
    except PostcodeLookupError as e:
        raise HTTPException(status_code=502, detail=str(e))
    if result is None:
        raise HTTPException(status_code=404, detail=f"Postcode {postcode} not found")
    return result
