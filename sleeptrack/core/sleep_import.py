from __future__ import annotations

import logging
from typing import Iterable, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from sleeptrack.core.health_export import load_sleep_segments, validate_upload
from sleeptrack.core.sessions import SleepSession, build_sessions
from sleeptrack.models.sleep import SleepEntry

logger = logging.getLogger(__name__)


def find_existing_entry(db: Session, user_id: int, session: SleepSession) -> Optional[SleepEntry]:
    return (
        db.query(SleepEntry)
        .filter(
            SleepEntry.user_id == user_id,
            SleepEntry.start_time == session.start_time,
            SleepEntry.end_time == session.end_time,
        )
        .first()
    )


def materialize_sessions(db: Session, user_id: int, sessions: Iterable[SleepSession]) -> int:
    """
    Persist sessions not yet stored for the user and return how many were new.

    Each new entry is committed on its own, so a failure halfway leaves the
    earlier sessions in place.
    """
    created = 0
    for session in sessions:
        if find_existing_entry(db, user_id, session) is not None:
            continue

        entry = SleepEntry(
            user_id=user_id,
            start_time=session.start_time,
            end_time=session.end_time,
            quality=session.quality_score,
            notes=f"Imported from Apple Health ({session.source})",
        )
        db.add(entry)
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        created += 1

    return created


async def import_health_export(
    db: Session,
    user_id: int,
    filename: Optional[str],
    payload: bytes,
) -> int:
    """
    Run the whole import for one uploaded Apple Health archive.

    Raises InvalidInputError / InvalidFormatError for unusable uploads;
    database errors propagate unchanged.
    """
    validate_upload(filename)

    segments, skipped = await run_in_threadpool(load_sleep_segments, payload)
    sessions = build_sessions(segments)
    created = await run_in_threadpool(materialize_sessions, db, user_id, sessions)

    logger.info(
        "Health import for user %s: %d segments, %d skipped, %d sessions, %d new",
        user_id,
        len(segments),
        skipped,
        len(sessions),
        created,
    )
    return created
