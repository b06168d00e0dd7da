"""Creation date resolution from embedded metadata.

Each metadata source is a strategy with the same signature, tried in a
fixed order; the first one that yields a date wins. Missing or malformed
tags are never errors, they just fall through to the next source.
"""

import re
from datetime import datetime, timedelta, timezone, tzinfo
from fractions import Fraction
from typing import Any, Callable, Optional, Sequence, Tuple

from .constants import get_logger
from .metadata import DirectoryKind, MetadataRecord


logger = get_logger()

DateStrategy = Callable[[MetadataRecord, Optional[tzinfo]], Optional[datetime]]

# EXIF (2023:01:05 13:05:07) or ISO-ish (2023-01-05T13:05:07) with optional
# fractional seconds and zone suffix
_DATETIME_PATTERN = re.compile(
    r'^\s*(\d{4})[-:](\d{2})[-:](\d{2})[T ](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:?\d{2})?\s*$'
)
_DATE_PATTERN = re.compile(r'^\s*(\d{4})[-:](\d{2})[-:](\d{2})\s*$')
_OFFSET_PATTERN = re.compile(r'^\s*([+-])(\d{2}):?(\d{2})\s*$')


def parse_offset(offset: Any) -> Optional[timezone]:
    """Build a fixed zone named ``GMT<offset>`` from a ``±HH:MM`` string."""
    if not isinstance(offset, str):
        return None
    match = _OFFSET_PATTERN.match(offset)
    if not match:
        return None

    sign, hours, minutes = match.group(1), int(match.group(2)), int(match.group(3))
    if hours > 23 or minutes > 59:
        return None

    delta = timedelta(hours=hours, minutes=minutes)
    if sign == '-':
        delta = -delta
    return timezone(delta, f"GMT{sign}{hours:02d}:{minutes:02d}")


def parse_exif_datetime(value: Any) -> Optional[datetime]:
    """Parse an EXIF or ISO 8601 date-time.

    Returns a naive datetime unless the string carries its own zone suffix.
    Zero-filled placeholders and impossible dates yield None.
    """
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None

    match = _DATETIME_PATTERN.match(value)
    if not match:
        return None

    year, month, day, hour, minute, second = (int(g) for g in match.groups()[:6])
    fraction, zone = match.group(7), match.group(8)
    microsecond = int(fraction.ljust(6, '0')[:6]) if fraction else 0

    try:
        parsed = datetime(year, month, day, hour, minute, second, microsecond)
    except ValueError:
        return None

    if zone == 'Z':
        return parsed.replace(tzinfo=timezone.utc)
    if zone:
        tz = parse_offset(zone)
        if tz is None:
            return None
        return parsed.replace(tzinfo=tz)
    return parsed


def attach_local_zone(wall_clock: datetime, default_tz: Optional[tzinfo]) -> datetime:
    """Attach the default zone (system zone when None) to a naive wall clock."""
    if default_tz is not None:
        return wall_clock.replace(tzinfo=default_tz)
    return wall_clock.astimezone()


def _zoned_from_tags(record: MetadataRecord, kind: DirectoryKind, date_tag: str,
                     tz_tag: str, default_tz: Optional[tzinfo]) -> Optional[datetime]:
    wall_clock = parse_exif_datetime(record.get(kind, date_tag))
    if wall_clock is None:
        return None

    zone = parse_offset(record.get(kind, tz_tag))
    if zone is not None:
        return wall_clock.replace(tzinfo=zone)
    if wall_clock.tzinfo is not None:
        return wall_clock
    return attach_local_zone(wall_clock, default_tz)


def _instant_in_local_zone(value: Any, default_tz: Optional[tzinfo]) -> Optional[datetime]:
    """Container creation times are UTC instants; show them in the local zone."""
    instant = parse_exif_datetime(value)
    if instant is None:
        return None
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(default_tz)


def from_exif_sub_ifd(record: MetadataRecord, default_tz: Optional[tzinfo] = None) -> Optional[datetime]:
    kind = DirectoryKind.EXIF_SUB_IFD
    return (_zoned_from_tags(record, kind, "date_original", "tz_original", default_tz)
            or _zoned_from_tags(record, kind, "date_digitized", "tz_digitized", default_tz))


def from_exif_ifd0(record: MetadataRecord, default_tz: Optional[tzinfo] = None) -> Optional[datetime]:
    kind = DirectoryKind.EXIF_IFD0
    return (_zoned_from_tags(record, kind, "date_time", "tz", default_tz)
            or _zoned_from_tags(record, kind, "date_original", "tz_original", default_tz))


def from_mp4(record: MetadataRecord, default_tz: Optional[tzinfo] = None) -> Optional[datetime]:
    return _instant_in_local_zone(record.get(DirectoryKind.MP4, "creation_time"), default_tz)


def from_quicktime(record: MetadataRecord, default_tz: Optional[tzinfo] = None) -> Optional[datetime]:
    return _instant_in_local_zone(record.get(DirectoryKind.QUICKTIME, "creation_time"), default_tz)


def from_gps(record: MetadataRecord, default_tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """GPS date stamp plus (hour, minute, second) rationals, always UTC."""
    date_stamp = record.get(DirectoryKind.GPS, "date_stamp")
    time_stamp = record.get(DirectoryKind.GPS, "time_stamp")
    if not isinstance(date_stamp, str) or time_stamp is None:
        return None

    date_match = _DATE_PATTERN.match(date_stamp)
    if not date_match:
        return None

    try:
        hour, minute, second = (Fraction(part) for part in time_stamp)
        whole_seconds = int(second)
        microsecond = int((second - whole_seconds) * 1_000_000)
        year, month, day = (int(g) for g in date_match.groups())
        return datetime(year, month, day, int(hour), int(minute), whole_seconds,
                        microsecond, tzinfo=timezone.utc)
    except (TypeError, ValueError, ZeroDivisionError):
        return None


DATE_STRATEGIES: Sequence[Tuple[DirectoryKind, DateStrategy]] = (
    (DirectoryKind.EXIF_SUB_IFD, from_exif_sub_ifd),
    (DirectoryKind.EXIF_IFD0, from_exif_ifd0),
    (DirectoryKind.MP4, from_mp4),
    (DirectoryKind.QUICKTIME, from_quicktime),
    (DirectoryKind.GPS, from_gps),
)


def resolve_creation_date(record: MetadataRecord,
                          default_tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """Return the first creation date found in priority order, or None.

    Args:
        record: Metadata read from the file
        default_tz: Zone for dates without an explicit offset; the system
            zone when None
    """
    for kind, strategy in DATE_STRATEGIES:
        if kind not in record:
            continue
        try:
            resolved = strategy(record, default_tz)
        except (TypeError, ValueError, OverflowError, OSError) as e:
            logger.debug(f"Ignoring malformed {kind.value} date: {e}")
            continue
        if resolved is not None:
            logger.debug(f"Creation date from {kind.value}: {resolved.isoformat()}")
            return resolved

    return None
