"""Job (site) schemas."""
from pydantic import BaseModel, Field
from typing import Optional

from utils.geo import MAX_GEOFENCE_RADIUS_M, MIN_GEOFENCE_RADIUS_M


class JobCreateIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1, max_length=50)
    address: Optional[str] = Field(None, max_length=1000)
    postcode: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    geofence_radius: int = Field(100, ge=MIN_GEOFENCE_RADIUS_M, le=MAX_GEOFENCE_RADIUS_M)
    geofence_enabled: bool = True


class JobUpdateIn(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    address: Optional[str] = Field(None, max_length=1000)
    postcode: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    geofence_radius: Optional[int] = Field(None, ge=MIN_GEOFENCE_RADIUS_M, le=MAX_GEOFENCE_RADIUS_M)
    geofence_enabled: Optional[bool] = None
    is_active: Optional[bool] = None


class JobOut(BaseModel):
    id: int
    organization_id: int
    name: str
    code: str
    address: Optional[str] = None
    postcode: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    geofence_radius: int
    geofence_enabled: bool
    is_active: bool

    class Config:
        from_attributes = True


class PostcodeOut(BaseModel):
    postcode: str
    latitude: float
    longitude: float
