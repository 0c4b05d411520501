import math

import pytest

from water_gnome.core.dates import days_between, iso_week_key, short_label
from water_gnome.core.errors import EmptyInputError, ValidationError
from water_gnome.core.features import build_features, round_half_up, round_to


def test_sorts_by_date(make_obs):
    obs = [make_obs("2025-08-12"), make_obs("2025-08-10"), make_obs("2025-08-11")]

    weather = build_features(obs)

    assert [w.date for w in weather] == ["2025-08-10", "2025-08-11", "2025-08-12"]


def test_rain_windows_clip_at_edges(make_dates, make_obs):
    days = make_dates("2025-08-10", 4)
    obs = [make_obs(d, rain=r) for d, r in zip(days, [0.1, 0.2, 0.3, 0.4])]

    weather = build_features(obs)

    assert [w.rain_past3 for w in weather] == [0.1, 0.3, 0.6, 0.9]
    assert [w.rain_next3 for w in weather] == [0.6, 0.9, 0.7, 0.4]


def test_hi_next3_divides_by_window_length(make_dates, make_obs):
    days = make_dates("2025-08-10", 3)
    obs = [make_obs(d, hi=hi) for d, hi in zip(days, [80, 90, 91])]

    weather = build_features(obs)

    # 87, (90 + 91) / 2 = 90.5 -> 91, 91
    assert [w.hi_next3 for w in weather] == [87, 91, 91]


def test_single_day(make_obs):
    weather = build_features([make_obs("2025-08-10", hi=88, rain=0.12)])

    assert len(weather) == 1
    day = weather[0]
    assert day.hi_next3 == 88
    assert day.rain_past3 == 0.12
    assert day.rain_next3 == 0.12


def test_rounding_and_clamping(make_obs):
    obs = make_obs("2025-08-10", hi=84.5, lo=61.4, rain=0.125, humidity=120, pop=-5, wind=7.25)

    day = build_features([obs])[0]

    assert day.hi == 85
    assert day.lo == 61
    assert day.rain == 0.13
    assert day.humidity == 100
    assert day.pop == 0
    assert day.wind == 7.3


def test_negative_rain_clamped_to_zero(make_obs):
    day = build_features([make_obs("2025-08-10", rain=-0.2)])[0]

    assert day.rain == 0.0
    assert day.rain_past3 == 0.0


def test_missing_optional_fields_default():
    day = build_features([{
        "date": "2025-08-10",
        "temp_max": 82,
        "temp_min": 64,
        "humidity": None,
        "rain": None,
    }])[0]

    assert day.humidity == 0
    assert day.rain == 0.0
    assert day.pop == 0
    assert day.wind == 0.0
    assert day.desc == ""


def test_description_lowercased(make_obs):
    day = build_features([make_obs("2025-08-10", description="Scattered Thunderstorms")])[0]

    assert day.desc == "scattered thunderstorms"


def test_empty_input():
    with pytest.raises(EmptyInputError) as exc_info:
        build_features([])

    assert exc_info.value.code == "EMPTY_INPUT"


@pytest.mark.parametrize("bad_date", [None, "2025-8-10", "2025-13-01", "08/10/2025", 20250810])
def test_bad_date_rejected(make_obs, bad_date):
    obs = make_obs("2025-08-10")
    obs["date"] = bad_date

    with pytest.raises(ValidationError) as exc_info:
        build_features([obs])

    assert exc_info.value.details["fields"] == ["date"]


def test_missing_date_rejected(make_obs):
    obs = make_obs("2025-08-10")
    del obs["date"]

    with pytest.raises(ValidationError):
        build_features([obs])


def test_non_numeric_temperature_rejected(make_obs):
    obs = make_obs("2025-08-10")
    obs["temp_max"] = "hot"

    with pytest.raises(ValidationError) as exc_info:
        build_features([make_obs("2025-08-09"), obs])

    assert exc_info.value.details["index"] == 1
    assert exc_info.value.details["fields"] == ["temp_max"]


def test_nan_temperature_rejected(make_obs):
    with pytest.raises(ValidationError):
        build_features([make_obs("2025-08-10", hi=math.nan)])


def test_duplicate_dates_rejected(make_obs):
    with pytest.raises(ValidationError) as exc_info:
        build_features([make_obs("2025-08-10"), make_obs("2025-08-10", hi=90)])

    assert exc_info.value.details["date"] == "2025-08-10"


def test_input_not_mutated(make_obs):
    obs = [make_obs("2025-08-11", humidity=150), make_obs("2025-08-10")]
    before = [dict(o) for o in obs]

    build_features(obs)

    assert obs == before


def test_rounding_helpers():
    assert round_half_up(2.5) == 3
    assert round_half_up(-2.5) == -2
    assert round_to(0.1 + 0.2, 2) == 0.3
    assert round_to(0.445, 2) == 0.45


def test_date_helpers():
    assert days_between("2025-08-12", "2025-08-10") == 2
    assert days_between("2025-03-01", "2025-02-28") == 1
    assert short_label("2025-08-10") == "Sun 8/10"
    assert iso_week_key("2024-12-30") == (2025, 1)
    assert iso_week_key("2021-01-01") == (2020, 53)
