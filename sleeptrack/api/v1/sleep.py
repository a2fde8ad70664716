import logging
import math
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from pydantic import BaseModel, ConfigDict, Field, model_validator
from sqlalchemy.orm import Session

from sleeptrack.core.db import get_db
from sleeptrack.core.errors import InvalidFormatError, InvalidInputError
from sleeptrack.core.security import get_current_user
from sleeptrack.core.sleep_import import import_health_export
from sleeptrack.models.sleep import SleepEntry
from sleeptrack.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sleep", tags=["sleep"])

INVALID_EXPORT_MESSAGE = (
    "Could not process the health data file. Please make sure it's a valid Apple Health export."
)


class SleepIn(BaseModel):
    start_time: datetime
    end_time: datetime
    quality: int = Field(..., ge=1, le=5)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def validate_order(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class SleepOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    start_time: datetime
    end_time: datetime
    quality: int
    notes: Optional[str] = None
    duration: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class SleepPage(BaseModel):
    data: List[SleepOut]
    pagination: Pagination


def _naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


@router.post("", response_model=SleepOut, status_code=201)
def create_sleep_entry(
    payload: SleepIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    entry = SleepEntry(
        user_id=user.id,
        start_time=_naive_utc(payload.start_time),
        end_time=_naive_utc(payload.end_time),
        quality=payload.quality,
        notes=payload.notes,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


@router.get("", response_model=SleepPage)
def list_sleep_entries(
    limit: int = Query(10, ge=1, le=100),
    page: int = Query(1, ge=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Return the caller's sleep entries, newest first.
    """
    query = db.query(SleepEntry).filter(SleepEntry.user_id == user.id)
    total = query.count()
    rows = (
        query.order_by(SleepEntry.start_time.desc())
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


@router.post("/import-health-data")
async def import_health_data(
    health_data: Optional[UploadFile] = File(None, alias="healthData"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Import sleep sessions from an Apple Health export (.zip).
    """
    filename = health_data.filename if health_data is not None else None
    try:
        payload = await health_data.read() if health_data is not None else b""
        count = await import_health_export(db, user.id, filename, payload)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except InvalidFormatError:
        logger.exception("Error processing health data for user %s", user.id)
        raise HTTPException(status_code=400, detail=INVALID_EXPORT_MESSAGE)
    except Exception:
        logger.exception("Error importing health data for user %s", user.id)
        raise HTTPException(status_code=500, detail="Error processing health data")

    return {"message": "Import successful", "count": count}
