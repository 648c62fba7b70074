from pathlib import Path

import pytest

from amaal_calendar.config import DEFAULT_RULES_PATH, Settings, get_location, resolve_place


def test_settings_defaults():
    s = Settings.from_env({})
    assert s.rules_path == DEFAULT_RULES_PATH
    assert (s.location, s.method, s.color_policy, s.section_shape) == ("qatar", "tehran", "rule_kind", "flat")


def test_settings_from_env():
    s = Settings.from_env({"AMAAL_RULES_PATH": "/tmp/r.json", "AMAAL_COLOR_POLICY": "title",
                           "AMAAL_SECTION_SHAPE": "context_amaal", "AMAAL_LOG_LEVEL": "debug"})
    assert s.rules_path == Path("/tmp/r.json")
    assert s.color_policy == "title"
    assert s.section_shape == "context_amaal"
    assert s.log_level == "DEBUG"


def test_resolve_place_preset():
    tz, coords = resolve_place("Toronto")
    assert tz == "America/Toronto"
    assert coords.lat == pytest.approx(43.6532)


def test_resolve_place_coordinates_lookup_timezone():
    tz, coords = resolve_place(None, 25.2854, 51.531)
    assert tz == "Asia/Qatar"
    assert resolve_place("toronto", 25.0, 51.0, "UTC")[0] == "UTC"


def test_resolve_place_errors():
    with pytest.raises(ValueError):
        resolve_place(None, 25.0, None)
    with pytest.raises(ValueError):
        get_location("atlantis")
