"""
UPS status classification.

This module turns the ``ups.status`` token string reported by the NUT
daemon into one boolean flag per known status code and reduces the
flags to a single severity level used for alerting.
"""

from enum import IntEnum
from typing import Dict, NamedTuple

from pydantic import BaseModel


class Severity(IntEnum):
    """Aggregate UPS health, ordered by meaning rather than by precedence."""

    IDLE = 0
    OPERATING = 1
    OPERATING_CRITICAL = 2
    ACTION_NEEDED = 3
    UNKNOWN = 4


SEVERITY_LABELS: Dict[int, str] = {level.value: level.name.lower() for level in Severity}


class StatusCode(NamedTuple):
    name: str
    severity: Severity


# Order matters: flags are written in this order.
STATUS_MAP: Dict[str, StatusCode] = {
    "OL": StatusCode("online", Severity.IDLE),
    "OB": StatusCode("onbattery", Severity.OPERATING),
    "LB": StatusCode("lowbattery", Severity.OPERATING_CRITICAL),
    "HB": StatusCode("highbattery", Severity.OPERATING_CRITICAL),
    "RB": StatusCode("replacebattery", Severity.ACTION_NEEDED),
    "CHRG": StatusCode("charging", Severity.IDLE),
    "DISCHRG": StatusCode("discharging", Severity.OPERATING),
    "BYPASS": StatusCode("bypass", Severity.ACTION_NEEDED),
    "CAL": StatusCode("calibration", Severity.OPERATING),
    "OFF": StatusCode("offline", Severity.ACTION_NEEDED),
    "OVER": StatusCode("overload", Severity.ACTION_NEEDED),
    "TRIM": StatusCode("trimming", Severity.OPERATING),
    "BOOST": StatusCode("boosting", Severity.OPERATING),
    "FSD": StatusCode("shutdown", Severity.OPERATING_CRITICAL),
}

# Highest precedence first.
SEVERITY_PRECEDENCE = (
    Severity.OPERATING_CRITICAL,
    Severity.ACTION_NEEDED,
    Severity.OPERATING,
    Severity.IDLE,
)


class StatusReading(BaseModel):
    """
    The classification of one status string.

    ``flags`` maps every status name of :data:`STATUS_MAP` (in map order) to
    whether its code is present, ``buckets`` records which severity buckets
    were raised.
    """

    status: str
    flags: Dict[str, bool]
    buckets: Dict[str, bool]
    severity: Severity


def parse_status(ups_status: str | None) -> StatusReading:
    """
    Classify a NUT status string such as ``"OL CHRG"`` or ``"OB LB"``.

    A forced shutdown (``FSD``) implies on-battery and low-battery. A code
    counts as present when its space-prefixed form occurs in the
    space-padded status, so ``"OL"`` is not found in ``"XOL"`` while a
    longer code starting with ``OL`` would still match.

    Args:
        ups_status: The raw ``ups.status`` value, empty when unavailable.

    Returns:
        The per-flag reading and the reduced severity.
    """
    raw_status = ups_status or ""
    if "FSD" in raw_status:
        ups_status = raw_status + " OB LB"
    else:
        ups_status = raw_status
    checker = f" {ups_status} "

    flags: Dict[str, bool] = {}
    buckets = {level.name.lower(): False for level in SEVERITY_PRECEDENCE}
    for code, status_code in STATUS_MAP.items():
        found = f" {code}" in checker
        flags[status_code.name] = found
        if found:
            buckets[status_code.severity.name.lower()] = True

    severity = Severity.UNKNOWN
    for level in SEVERITY_PRECEDENCE:
        if buckets[level.name.lower()]:
            severity = level
            break

    return StatusReading(status=raw_status, flags=flags, buckets=buckets, severity=severity)
