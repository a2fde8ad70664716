from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, List


class SleepStage(str, Enum):
    DEEP = "deep"
    REM = "rem"
    CORE = "core"
    UNSPECIFIED = "unspecified"


# Checked in order; the first stage present anywhere in a session wins.
STAGE_PRIORITY = [SleepStage.DEEP, SleepStage.REM, SleepStage.CORE, SleepStage.UNSPECIFIED]

BASE_QUALITY = {
    SleepStage.DEEP: 5,
    SleepStage.REM: 4,
    SleepStage.CORE: 3,
    SleepStage.UNSPECIFIED: 3,
}

# Segments separated by at most this many minutes belong to the same night.
MAX_GAP_MINUTES = 30
# Anything shorter is noise, not a sleep session.
MIN_SESSION_HOURS = 0.5


@dataclass(frozen=True)
class RawSleepSegment:
    start_time: datetime
    end_time: datetime
    stage: SleepStage
    source: str


@dataclass
class SleepSession:
    segments: List[RawSleepSegment] = field(default_factory=list)

    @property
    def start_time(self) -> datetime:
        return min(s.start_time for s in self.segments)

    @property
    def end_time(self) -> datetime:
        return max(s.end_time for s in self.segments)

    @property
    def duration_hours(self) -> float:
        return (self.end_time - self.start_time).total_seconds() / 3600.0

    @property
    def source(self) -> str:
        return self.segments[0].source

    @property
    def best_stage(self) -> SleepStage:
        return best_stage(s.stage for s in self.segments)

    @property
    def quality_score(self) -> int:
        return estimate_quality(self.best_stage, self.duration_hours)


def best_stage(stages: Iterable[SleepStage]) -> SleepStage:
    present = set(stages)
    for stage in STAGE_PRIORITY:
        if stage in present:
            return stage
    return SleepStage.UNSPECIFIED


def estimate_quality(stage: SleepStage, duration_hours: float) -> int:
    """
    Quality 1-5 from the best stage seen in a session and its length.

    Very short, short and excessively long sleep each cost points; only the
    first matching tier applies.
    """
    quality = BASE_QUALITY[stage]

    if duration_hours < 4:
        quality -= 2
    elif duration_hours < 6:
        quality -= 1
    elif duration_hours > 10:
        quality -= 1

    return max(1, quality)


def group_segments(segments: Iterable[RawSleepSegment]) -> List[SleepSession]:
    """
    Merge segments into sessions, splitting wherever the gap between a
    segment's start and the current session's end exceeds MAX_GAP_MINUTES.

    The session end is the latest end seen so far, so a short segment nested
    inside a longer one cannot open a gap that would make sessions overlap.
    """
    ordered = sorted(segments, key=lambda s: (s.start_time, s.end_time))

    sessions: List[SleepSession] = []
    current: List[RawSleepSegment] = []
    current_end: datetime | None = None

    for segment in ordered:
        if not current:
            current = [segment]
            current_end = segment.end_time
            continue

        gap_minutes = (segment.start_time - current_end).total_seconds() / 60.0
        if gap_minutes <= MAX_GAP_MINUTES:
            current.append(segment)
            current_end = max(current_end, segment.end_time)
        else:
            sessions.append(SleepSession(segments=current))
            current = [segment]
            current_end = segment.end_time

    if current:
        sessions.append(SleepSession(segments=current))

    return sessions


def build_sessions(segments: Iterable[RawSleepSegment]) -> List[SleepSession]:
    """Group segments into sessions and drop the ones too short to count."""
    return [s for s in group_segments(segments) if s.duration_hours >= MIN_SESSION_HOURS]
