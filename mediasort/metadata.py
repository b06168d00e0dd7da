"""
Embedded metadata lookup backed by exiftool.

The rest of mediasort only sees a ``MetadataRecord``: a read-only bag of
typed directories, each holding named tags. ``read_metadata`` builds one
from exiftool's group-qualified JSON output.
"""

import json
import re
import subprocess
from enum import Enum
from fractions import Fraction
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from .constants import check_tool_availability, get_logger
from .errors import MetadataError


logger = get_logger()


class DirectoryKind(Enum):
    EXIF_SUB_IFD = "ExifSubIfd"
    EXIF_IFD0 = "ExifIfd0"
    MP4 = "Mp4"
    QUICKTIME = "QuickTime"
    GPS = "Gps"


class MetadataRecord:
    """Read-only mapping of directory kind to ``{tag name: value}``."""

    def __init__(self, directories: Optional[Mapping[DirectoryKind, Mapping[str, Any]]] = None):
        self._directories = MappingProxyType({
            kind: MappingProxyType(dict(tags))
            for kind, tags in (directories or {}).items()
        })

    def directory(self, kind: DirectoryKind) -> Optional[Mapping[str, Any]]:
        return self._directories.get(kind)

    def get(self, kind: DirectoryKind, tag: str) -> Any:
        tags = self._directories.get(kind)
        if tags is None:
            return None
        return tags.get(tag)

    def __contains__(self, kind: DirectoryKind) -> bool:
        return kind in self._directories

    def __bool__(self) -> bool:
        return bool(self._directories)

    def __repr__(self) -> str:
        inner = {kind.value: dict(tags) for kind, tags in self._directories.items()}
        return f"MetadataRecord({inner!r})"


# exiftool "Group1:Tag" -> (directory, tag name)
EXIFTOOL_TAG_MAP: Dict[str, Tuple[DirectoryKind, str]] = {
    "ExifIFD:DateTimeOriginal": (DirectoryKind.EXIF_SUB_IFD, "date_original"),
    "ExifIFD:OffsetTimeOriginal": (DirectoryKind.EXIF_SUB_IFD, "tz_original"),
    "ExifIFD:CreateDate": (DirectoryKind.EXIF_SUB_IFD, "date_digitized"),
    "ExifIFD:OffsetTimeDigitized": (DirectoryKind.EXIF_SUB_IFD, "tz_digitized"),
    "IFD0:ModifyDate": (DirectoryKind.EXIF_IFD0, "date_time"),
    "IFD0:OffsetTime": (DirectoryKind.EXIF_IFD0, "tz"),
    "IFD0:DateTimeOriginal": (DirectoryKind.EXIF_IFD0, "date_original"),
    "IFD0:OffsetTimeOriginal": (DirectoryKind.EXIF_IFD0, "tz_original"),
    "GPS:GPSDateStamp": (DirectoryKind.GPS, "date_stamp"),
}

# Tags requested from exiftool (group-less names; -G1 adds the group)
EXIFTOOL_TAGS = (
    "-FileType", "-DateTimeOriginal", "-CreateDate", "-ModifyDate",
    "-OffsetTime", "-OffsetTimeOriginal", "-OffsetTimeDigitized",
    "-GPSDateStamp", "-GPSTimeStamp",
)

MP4_FILE_TYPES = ("MP4", "M4V")

_GPS_TIME_PATTERN = re.compile(r'^(\d{1,2}):(\d{1,2}):(\d{1,2}(?:\.\d+)?)$')


def parse_gps_time_stamp(value: Any) -> Optional[Tuple[Fraction, Fraction, Fraction]]:
    """Convert exiftool's ``HH:MM:SS[.ff]`` GPS time into three rationals."""
    if value is None:
        return None
    match = _GPS_TIME_PATTERN.match(str(value).strip())
    if not match:
        return None
    return tuple(Fraction(part) for part in match.groups())


def record_from_exiftool(data: Mapping[str, Any]) -> MetadataRecord:
    """Map one file's ``exiftool -json -G1`` object into a MetadataRecord."""
    directories: Dict[DirectoryKind, Dict[str, Any]] = {}

    for key, (kind, tag) in EXIFTOOL_TAG_MAP.items():
        if key in data:
            directories.setdefault(kind, {})[tag] = data[key]

    # Movie header creation time lands in the MP4 or QuickTime directory
    create_date = data.get("QuickTime:CreateDate")
    if create_date is not None:
        file_type = str(data.get("File:FileType", "")).upper()
        kind = DirectoryKind.MP4 if file_type in MP4_FILE_TYPES else DirectoryKind.QUICKTIME
        directories.setdefault(kind, {})["creation_time"] = create_date

    time_stamp = parse_gps_time_stamp(data.get("GPS:GPSTimeStamp"))
    if time_stamp is not None:
        directories.setdefault(DirectoryKind.GPS, {})["time_stamp"] = time_stamp

    return MetadataRecord(directories)


def read_metadata(path: Path) -> MetadataRecord:
    """Read embedded metadata for one file.

    Raises MetadataError when exiftool is missing, fails, or returns
    something that is not its JSON report.
    """
    if not check_tool_availability("exiftool"):
        raise MetadataError(path, "exiftool is not installed")

    try:
        result = subprocess.run(
            ["exiftool", "-q", "-json", "-G1", *EXIFTOOL_TAGS, str(path)],
            capture_output=True, encoding="utf-8", errors="replace", check=True
        )
    except subprocess.CalledProcessError as e:
        raise MetadataError(path, (e.stderr or str(e)).strip()) from e
    except (OSError, UnicodeError) as e:
        raise MetadataError(path, str(e)) from e

    try:
        report = json.loads(result.stdout)
        data = report[0]
    except (ValueError, IndexError, KeyError, TypeError) as e:
        raise MetadataError(path, f"unreadable exiftool output: {e}") from e

    logger.debug(f"Metadata for {path}: {data}")
    return record_from_exiftool(data)
