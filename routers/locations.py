from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from sqlalchemy import func
from pydantic import BaseModel, Field, validator
from typing import List
from datetime import datetime
from database import get_db
from models.fleet import Location
from models.user import User
from utils.auth_dependency import get_current_user

router = APIRouter(prefix="/api/locations", tags=["Locations"])

class LocationCreate(BaseModel):
    location_name: str = Field(..., min_length=1, max_length=200)

    @validator('location_name')
    def collapse_whitespace(cls, v):
        v = ' '.join(v.split())
        if not v:
            raise ValueError('Location name is required')
        return v

class LocationResponse(BaseModel):
    id: int
    location_name: str
    created_at: datetime

    class Config:
        from_attributes = True

@router.get("/", response_model=List[LocationResponse])
def get_locations(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return db.query(Location).order_by(Location.location_name).all()

@router.post("/", response_model=LocationResponse, status_code=status.HTTP_201_CREATED)
def create_location(
    request: LocationCreate,
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Add a location; an existing name (any case) is returned as is"""
    existing = db.query(Location).filter(
        func.lower(Location.location_name) == request.location_name.lower()
    ).first()
    if existing:
        response.status_code = status.HTTP_200_OK
        return existing

    location = Location(location_name=request.location_name)
    db.add(location)
    db.commit()
    db.refresh(location)
    return location
