"""
Tests for UPS status classification.
"""

import pytest

from nutbridge.nut.status import SEVERITY_LABELS, STATUS_MAP, Severity, parse_status

ALL_FLAGS = [code.name for code in STATUS_MAP.values()]


def active(reading):
    return {name for name, found in reading.flags.items() if found}


def test_online():
    reading = parse_status("OL")
    assert active(reading) == {"online"}
    assert reading.severity == Severity.IDLE


def test_on_battery_low_battery_is_critical():
    reading = parse_status("OB LB")
    assert active(reading) == {"onbattery", "lowbattery"}
    assert reading.severity == Severity.OPERATING_CRITICAL


def test_empty_status_is_unknown():
    reading = parse_status("")
    assert not active(reading)
    assert reading.severity == Severity.UNKNOWN
    assert parse_status(None).severity == Severity.UNKNOWN


def test_replace_battery_needs_action():
    reading = parse_status("RB")
    assert active(reading) == {"replacebattery"}
    assert reading.severity == Severity.ACTION_NEEDED


@pytest.mark.parametrize("status", ["FSD", "OL FSD", "FSD OB", "CHRG FSD"])
def test_forced_shutdown_implies_battery_flags(status):
    reading = parse_status(status)
    assert reading.flags["shutdown"]
    assert reading.flags["onbattery"]
    assert reading.flags["lowbattery"]
    assert reading.severity == Severity.OPERATING_CRITICAL
    # The reported status is left as received.
    assert reading.status == status


def test_every_flag_is_reported_in_map_order():
    reading = parse_status("OL CHRG")
    assert list(reading.flags) == ALL_FLAGS
    assert len(reading.flags) == 14
    assert active(reading) == {"online", "charging"}
    assert reading.severity == Severity.IDLE


@pytest.mark.parametrize(
    "status, severity",
    [
        ("OB DISCHRG", Severity.OPERATING),
        ("OL TRIM", Severity.OPERATING),
        ("OL BOOST", Severity.OPERATING),
        ("OL CAL", Severity.OPERATING),
        ("OL BYPASS", Severity.ACTION_NEEDED),
        ("OFF", Severity.ACTION_NEEDED),
        ("OL OVER", Severity.ACTION_NEEDED),
        ("OL HB", Severity.OPERATING_CRITICAL),
        # operating_critical beats action_needed, which beats operating
        ("OB LB RB", Severity.OPERATING_CRITICAL),
        ("OB RB", Severity.ACTION_NEEDED),
    ],
)
def test_severity_precedence(status, severity):
    assert parse_status(status).severity == severity


def test_codes_must_start_a_token():
    # DISCHRG contains CHRG but not at a token start.
    reading = parse_status("DISCHRG")
    assert reading.flags["discharging"]
    assert not reading.flags["charging"]
    assert not active(parse_status("XOL"))


def test_codes_match_as_token_prefix():
    # OVER is found both as itself and as the OVER prefix; OFF is not OL.
    reading = parse_status("OVER")
    assert reading.flags["overload"]
    assert not reading.flags["online"]
    assert parse_status("OLX").flags["online"]


def test_buckets_record_raised_levels():
    reading = parse_status("OB LB")
    assert reading.buckets == {
        "operating_critical": True,
        "action_needed": False,
        "operating": True,
        "idle": False,
    }


def test_severity_labels():
    assert SEVERITY_LABELS == {
        0: "idle",
        1: "operating",
        2: "operating_critical",
        3: "action_needed",
        4: "unknown",
    }
