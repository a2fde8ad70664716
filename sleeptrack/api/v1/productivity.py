# sleeptrack/api/v1/productivity.py

import math
from datetime import date as DateType, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sleeptrack.api.v1.sleep import Pagination
from sleeptrack.core.db import get_db
from sleeptrack.core.security import get_current_user
from sleeptrack.models.productivity import ProductivityEntry
from sleeptrack.models.user import User

router = APIRouter(prefix="/productivity", tags=["productivity"])

DUPLICATE_MESSAGE = "Productivity entry for this date already exists"
NOT_FOUND_MESSAGE = "Productivity entry not found"
NULLABLE_FIELDS = {"notes"}


# ---------- Pydantic schemas ----------

class ProductivityIn(BaseModel):
    date: DateType
    productivity_rating: int = Field(..., ge=1, le=5)
    tasks_completed: int = Field(..., ge=0)
    focus_quality: int = Field(..., ge=1, le=5)
    energy_level: int = Field(..., ge=1, le=5)
    work_hours: float = Field(..., ge=0, le=24)
    notes: Optional[str] = None


class ProductivityUpdate(BaseModel):
    id: Optional[int] = None
    date: Optional[DateType] = None
    productivity_rating: Optional[int] = Field(None, ge=1, le=5)
    tasks_completed: Optional[int] = Field(None, ge=0)
    focus_quality: Optional[int] = Field(None, ge=1, le=5)
    energy_level: Optional[int] = Field(None, ge=1, le=5)
    work_hours: Optional[float] = Field(None, ge=0, le=24)
    notes: Optional[str] = None


class ProductivityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date: DateType
    productivity_rating: int
    tasks_completed: int
    focus_quality: int
    energy_level: int
    work_hours: float
    notes: Optional[str] = None
    efficiency_score: float
    performance_score: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductivityPage(BaseModel):
    data: List[ProductivityOut]
    pagination: Pagination


def _get_owned_entry(db: Session, user: User, entry_id: int) -> ProductivityEntry:
    entry = (
        db.query(ProductivityEntry)
        .filter(ProductivityEntry.id == entry_id, ProductivityEntry.user_id == user.id)
        .one_or_none()
    )
    if entry is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)
    return entry


def _commit_or_conflict(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail=DUPLICATE_MESSAGE)


# ---------- Endpoints ----------

@router.post("", response_model=ProductivityOut, status_code=201)
def create_productivity_entry(
    payload: ProductivityIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Record one day of productivity metrics. One entry per user and date.
    """
    entry = ProductivityEntry(user_id=user.id, **payload.model_dump())
    db.add(entry)
    _commit_or_conflict(db)
    db.refresh(entry)
    return entry


@router.get("", response_model=ProductivityPage)
def list_productivity_entries(
    limit: int = Query(10, ge=1, le=100),
    page: int = Query(1, ge=1),
    start_date: Optional[DateType] = None,
    end_date: Optional[DateType] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(ProductivityEntry).filter(ProductivityEntry.user_id == user.id)
    if start_date:
        query = query.filter(ProductivityEntry.date >= start_date)
    if end_date:
        query = query.filter(ProductivityEntry.date <= end_date)

    total = query.count()
    rows = (
        query.order_by(ProductivityEntry.date.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return {
        "data": rows,
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "pages": math.ceil(total / limit),
        },
    }


@router.put("", response_model=ProductivityOut)
def update_productivity_entry(
    payload: ProductivityUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if payload.id is None:
        raise HTTPException(status_code=400, detail="ID is required")

    entry = _get_owned_entry(db, user, payload.id)
    for field, value in payload.model_dump(exclude={"id"}, exclude_unset=True).items():
        if value is None and field not in NULLABLE_FIELDS:
            continue
        setattr(entry, field, value)

    _commit_or_conflict(db)
    db.refresh(entry)
    return entry


@router.delete("")
def delete_productivity_entry(
    id: Optional[int] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if id is None:
        raise HTTPException(status_code=400, detail="ID is required")

    entry = _get_owned_entry(db, user, id)
    db.delete(entry)
    db.commit()
    return {"message": "Productivity entry deleted successfully"}
