"""
Apple Health export intake.

An export is a .zip holding ``apple_health_export/export.xml``. The archive is
unpacked into a private scratch directory that is removed again when the
import finishes, whatever the outcome.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
import xml.etree.ElementTree as ET
import zipfile
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from sleeptrack.core.config import settings
from sleeptrack.core.errors import InvalidFormatError, InvalidInputError
from sleeptrack.core.sessions import RawSleepSegment, SleepStage

logger = logging.getLogger(__name__)

ARCHIVE_EXTENSION = ".zip"
ARCHIVE_NAME = "export.zip"
EXPORT_DOCUMENT = Path("apple_health_export") / "export.xml"

HK_SLEEP = "HKCategoryTypeIdentifierSleepAnalysis"
DEFAULT_SOURCE = "Apple Health"

# Apple stage values, matched on the exact string. Any other value that
# contains "Asleep" (older exports write plain "...Asleep") is unspecified.
HK_STAGE_VALUES = {
    "HKCategoryValueSleepAnalysisAsleepDeep": SleepStage.DEEP,
    "HKCategoryValueSleepAnalysisAsleepREM": SleepStage.REM,
    "HKCategoryValueSleepAnalysisAsleepCore": SleepStage.CORE,
    "HKCategoryValueSleepAnalysisAsleepUnspecified": SleepStage.UNSPECIFIED,
}


def validate_upload(filename: Optional[str]) -> None:
    if not filename:
        raise InvalidInputError("No file uploaded")
    if not filename.endswith(ARCHIVE_EXTENSION):
        raise InvalidInputError("Please upload a .zip file from Apple Health")


@contextmanager
def scratch_directory() -> Iterator[Path]:
    path = Path(tempfile.mkdtemp(prefix="health-import-", dir=settings.IMPORT_SCRATCH_DIR))
    try:
        yield path
    finally:
        try:
            shutil.rmtree(path)
        except OSError:
            logger.exception("Error cleaning up temp files in %s", path)


def _safe_extractall(zf: zipfile.ZipFile, dest_dir: Path) -> None:
    dest_dir = dest_dir.resolve()

    for member in zf.infolist():
        target_path = (dest_dir / member.filename).resolve()
        if dest_dir not in target_path.parents and target_path != dest_dir:
            raise InvalidFormatError(f"Unsafe path in zip: {member.filename}")

    zf.extractall(dest_dir)


def unpack_export(payload: bytes, workdir: Path) -> Path:
    """
    Write the uploaded archive into ``workdir``, extract it there and return
    the path of the export document.
    """
    zip_path = workdir / ARCHIVE_NAME
    zip_path.write_bytes(payload)

    try:
        with zipfile.ZipFile(zip_path, "r") as zf:
            _safe_extractall(zf, workdir)
    except zipfile.BadZipFile as e:
        raise InvalidFormatError(f"Not a zip archive: {e}") from e

    xml_path = workdir / EXPORT_DOCUMENT
    if not xml_path.is_file():
        raise InvalidFormatError("Invalid Apple Health export format")
    return xml_path


def parse_export_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an export timestamp such as ``2024-01-15 23:04:12 -0500``.

    Aware values come back as naive UTC; unparseable values as None.
    """
    if not value or not isinstance(value, str):
        return None

    value = value.strip()
    dt = None
    try:
        dt = datetime.strptime(value, "%Y-%m-%d %H:%M:%S %z")
    except ValueError:
        try:
            if value.endswith("Z"):
                value = value.replace("Z", "+00:00")
            dt = datetime.fromisoformat(value)
        except ValueError:
            return None

    if dt.tzinfo is not None:
        try:
            dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
        except OverflowError:
            # offset pushes the value past datetime.min / datetime.max
            return None
    return dt


def stage_for_value(value: str) -> SleepStage:
    return HK_STAGE_VALUES.get(value, SleepStage.UNSPECIFIED)


def extract_sleep_segments(root: ET.Element) -> Tuple[List[RawSleepSegment], int]:
    """
    Collect "asleep" sleep-analysis records from the export root.

    Returns the segments plus the number of sleep records that were skipped
    because their dates were missing or unusable.
    """
    segments: List[RawSleepSegment] = []
    skipped = 0

    for record in root.findall("Record"):
        attrs = record.attrib
        if attrs.get("type") != HK_SLEEP:
            continue

        value = attrs.get("value", "")
        # "InBed" and "Awake" are not sleep
        if "Asleep" not in value:
            continue

        start = parse_export_date(attrs.get("startDate"))
        end = parse_export_date(attrs.get("endDate"))
        if start is None or end is None or end <= start:
            logger.warning(
                "Skipping sleep record with bad dates: start=%r end=%r",
                attrs.get("startDate"),
                attrs.get("endDate"),
            )
            skipped += 1
            continue

        segments.append(
            RawSleepSegment(
                start_time=start,
                end_time=end,
                stage=stage_for_value(value),
                source=attrs.get("sourceName") or DEFAULT_SOURCE,
            )
        )

    return segments, skipped


def read_export(xml_path: Path) -> Tuple[List[RawSleepSegment], int]:
    try:
        root = ET.parse(xml_path).getroot()
    except ET.ParseError as e:
        raise InvalidFormatError(f"Could not parse {xml_path.name}: {e}") from e
    return extract_sleep_segments(root)


def load_sleep_segments(payload: bytes) -> Tuple[List[RawSleepSegment], int]:
    """Archive intake and record extraction for one uploaded export."""
    with scratch_directory() as workdir:
        xml_path = unpack_export(payload, workdir)
        return read_export(xml_path)
