from collections import Counter

import pytest

from water_gnome.core.dates import days_between, iso_week_key
from water_gnome.core.features import build_features
from water_gnome.core.planner import (
    DecisionRecord,
    enforce_no_adjacent_yes,
    is_convective_risk,
    nudge_forward_coverage,
    plan_schedule,
    soften_convective,
)
from water_gnome.core.policy import GARDEN_POLICY, WateringPolicy
from water_gnome.core.scoring import WateringStatus

YES, MAYBE, NO = WateringStatus.YES, WateringStatus.MAYBE, WateringStatus.NO


def statuses(decisions):
    return {d.date: d.status for d in decisions}


def assert_plan_sound(decisions, policy):
    yes_dates = [d.date for d in decisions if d.is_yes]
    for earlier, later in zip(yes_dates, yes_dates[1:]):
        assert days_between(later, earlier) > policy.min_gap_days
    for count in Counter(iso_week_key(d) for d in yes_dates).values():
        assert count <= policy.max_yes_per_week


# ============================================================================
# Scenarios
# ============================================================================

def test_heat_ramp(heat_ramp, ramp_policy):
    weather = build_features(heat_ramp)

    decisions = plan_schedule(weather, ramp_policy, today="2025-08-04")

    assert [d.date for d in decisions] == [w.date for w in weather]
    result = statuses(decisions)
    # Cool start resolved by score
    assert result["2025-08-04"] is NO
    assert result["2025-08-05"] is NO
    assert result["2025-08-06"] is MAYBE
    assert result["2025-08-07"] is MAYBE
    # Heat wave from 8/8; spacing holds the next two days back
    assert [d.date for d in decisions if d.is_yes] == ["2025-08-08", "2025-08-11"]
    assert_plan_sound(decisions, ramp_policy)


def test_heat_ramp_scores_rounded(heat_ramp, ramp_policy):
    decisions = plan_schedule(build_features(heat_ramp), ramp_policy)

    assert decisions[0].score == 0.37
    assert all(0.0 <= d.score <= 1.0 for d in decisions)


def test_heavy_rain_day_is_no_regardless_of_heat(make_obs, garden_policy):
    weather = build_features([make_obs("2025-08-10", hi=100, humidity=20, rain=1.0)])

    decisions = plan_schedule(weather, garden_policy, today="2025-08-10")

    assert decisions[0].status is NO


def test_recent_rain_blocks_watering(make_dates, make_obs, garden_policy):
    days = make_dates("2025-08-10", 3)
    obs = [
        make_obs(days[0], hi=95, rain=0.25),
        make_obs(days[1], hi=95, rain=0.25),
        make_obs(days[2], hi=95, rain=0.2),
    ]

    decisions = plan_schedule(build_features(obs), garden_policy, today=days[0])

    # rain_past3 reaches 0.70 on the third day
    assert decisions[2].status is NO


def test_humid_mild_stretch_is_no(make_obs, garden_policy):
    weather = build_features([make_obs("2025-08-10", hi=78, humidity=85)])

    assert plan_schedule(weather, garden_policy)[0].status is NO


def test_high_pop_with_trace_rain_is_no(make_obs, garden_policy):
    weather = build_features([make_obs("2025-08-10", hi=95, pop=65)])

    assert plan_schedule(weather, garden_policy)[0].status is NO


def test_convective_yes_softened_below_92(make_obs, garden_policy):
    weather = build_features([make_obs("2025-08-10", hi=88, pop=45)])

    assert is_convective_risk(weather[0], garden_policy)
    assert plan_schedule(weather, garden_policy, today="2025-08-10")[0].status is MAYBE


def test_convective_yes_kept_when_very_hot(make_obs, garden_policy):
    weather = build_features([make_obs("2025-08-10", hi=95, pop=45)])

    assert plan_schedule(weather, garden_policy, today="2025-08-10")[0].status is YES


def test_convective_risk_needs_trace_rain(make_obs, garden_policy):
    wet = build_features([make_obs("2025-08-10", pop=45, rain=0.1)])[0]
    dry_sky = build_features([make_obs("2025-08-10", pop=30)])[0]

    assert not is_convective_risk(wet, garden_policy)
    assert not is_convective_risk(dry_sky, garden_policy)


def test_spacing_and_weekly_quota(make_dates, make_obs):
    policy = WateringPolicy.from_dict({**GARDEN_POLICY, "maxYesPerWeek": 2, "minGapDays": 1})
    days = make_dates("2025-08-04", 10)
    weather = build_features([make_obs(d, hi=95) for d in days])

    decisions = plan_schedule(weather, policy, today=days[0])

    # Mon/Wed, quota full for the rest of the week, then Mon/Wed again
    assert [d.date for d in decisions if d.is_yes] == [
        "2025-08-04", "2025-08-06", "2025-08-11", "2025-08-13",
    ]
    assert_plan_sound(decisions, policy)


def test_quota_resets_on_iso_week_across_new_year(make_dates, make_obs):
    policy = WateringPolicy.from_dict({**GARDEN_POLICY, "maxYesPerWeek": 1, "minGapDays": 1})
    # Sat 2024-12-28 .. Fri 2025-01-03; Mon 12-30 starts ISO week 2025-W01
    days = make_dates("2024-12-28", 7)
    weather = build_features([make_obs(d, hi=95) for d in days])

    decisions = plan_schedule(weather, policy, today=days[0])

    assert [d.date for d in decisions if d.is_yes] == ["2024-12-28", "2024-12-30"]


def test_never_two_yes_in_a_row_under_loose_policy(make_dates, make_obs):
    policy = WateringPolicy.from_dict({**GARDEN_POLICY, "maxYesPerWeek": 7, "minGapDays": 0})
    days = make_dates("2025-08-04", 7)
    weather = build_features([make_obs(d, hi=96) for d in days])

    decisions = plan_schedule(weather, policy, today=days[0])

    for prev, cur in zip(decisions, decisions[1:]):
        assert not (prev.is_yes and cur.is_yes)


# ============================================================================
# Post-passes
# ============================================================================

def test_enforce_no_adjacent_yes_demotes_later_day():
    decisions = [
        DecisionRecord("2025-08-10", YES, 0.7),
        DecisionRecord("2025-08-11", YES, 0.7),
        DecisionRecord("2025-08-12", YES, 0.7),
        DecisionRecord("2025-08-14", YES, 0.7),
    ]

    result = enforce_no_adjacent_yes(decisions)

    assert [d.status for d in result] == [YES, NO, YES, YES]
    assert result[1].score == 0.7
    assert decisions[1].status is YES


def test_adjacency_uses_calendar_days():
    # Gap in the input: 8/10 and 8/12 sit next to each other but are not adjacent days
    decisions = [DecisionRecord("2025-08-10", YES, 0.7), DecisionRecord("2025-08-12", YES, 0.7)]

    assert [d.status for d in enforce_no_adjacent_yes(decisions)] == [YES, YES]


def test_soften_convective(make_obs, garden_policy):
    weather = build_features([make_obs("2025-08-10", hi=88, pop=45), make_obs("2025-08-11", hi=88)])
    decisions = [DecisionRecord("2025-08-10", YES, 0.7), DecisionRecord("2025-08-11", NO, 0.3)]

    result = soften_convective(weather, decisions, garden_policy)

    assert [d.status for d in result] == [MAYBE, NO]


@pytest.fixture
def warm_week(make_dates, make_obs):
    days = make_dates("2025-08-04", 7)
    return build_features([make_obs(d, hi=86, humidity=55) for d in days])


def test_nudge_adds_second_soak(warm_week, garden_policy):
    decisions = [DecisionRecord(w.date, MAYBE, 0.5) for w in warm_week]
    decisions[0] = DecisionRecord(warm_week[0].date, YES, 0.65)

    result = nudge_forward_coverage(warm_week, decisions, garden_policy, "2025-08-04")

    # 8/5 and 8/6 are too close to 8/4; only the earliest eligible day is upgraded
    assert [d.date for d in result if d.is_yes] == ["2025-08-04", "2025-08-07"]
    assert result[4].status is MAYBE


def test_nudge_skipped_when_week_is_wet(make_dates, make_obs, garden_policy):
    days = make_dates("2025-08-04", 7)
    weather = build_features([make_obs(d, hi=90, rain=0.05) for d in days])
    decisions = [DecisionRecord(d, MAYBE, 0.5) for d in days]

    result = nudge_forward_coverage(weather, decisions, garden_policy, days[0])

    assert result == decisions


def test_nudge_skipped_when_week_is_cool(make_dates, make_obs, garden_policy):
    days = make_dates("2025-08-04", 7)
    weather = build_features([make_obs(d, hi=80) for d in days])
    decisions = [DecisionRecord(d, MAYBE, 0.5) for d in days]

    assert nudge_forward_coverage(weather, decisions, garden_policy, days[0]) == decisions


def test_nudge_respects_weekly_quota(warm_week):
    policy = WateringPolicy.from_dict({**GARDEN_POLICY, "maxYesPerWeek": 1})
    decisions = [DecisionRecord(w.date, MAYBE, 0.5) for w in warm_week]
    decisions[0] = DecisionRecord(warm_week[0].date, YES, 0.65)

    result = nudge_forward_coverage(warm_week, decisions, policy, "2025-08-04")

    # Mon 8/4 .. Sun 8/10 is one ISO week and its single soak is taken
    assert result == decisions


def test_nudge_can_upgrade_a_day_before_the_planned_soak(warm_week, garden_policy):
    decisions = [DecisionRecord(w.date, MAYBE, 0.5) for w in warm_week]
    decisions[4] = DecisionRecord("2025-08-08", YES, 0.65)

    result = nudge_forward_coverage(warm_week, decisions, garden_policy, "2025-08-04")

    assert [d.date for d in result if d.is_yes] == ["2025-08-04", "2025-08-08"]


def test_nudge_keeps_spacing_on_both_sides(warm_week, garden_policy):
    decisions = [DecisionRecord(w.date, MAYBE, 0.5) for w in warm_week]
    decisions[2] = DecisionRecord("2025-08-06", YES, 0.65)

    result = nudge_forward_coverage(warm_week, decisions, garden_policy, "2025-08-04")

    # 8/4 .. 8/8 all sit within two days of 8/6
    assert [d.date for d in result if d.is_yes] == ["2025-08-06", "2025-08-09"]


def test_nudge_window_starts_at_today(warm_week, garden_policy):
    decisions = [DecisionRecord(w.date, MAYBE, 0.5) for w in warm_week]

    result = nudge_forward_coverage(warm_week, decisions, garden_policy, "2025-08-06")

    assert [d.date for d in result if d.is_yes] == ["2025-08-06"]


def test_plan_schedule_handles_empty_weather(garden_policy):
    assert plan_schedule([], garden_policy) == []
