from datetime import datetime, timedelta, timezone

from conftest import NOW, days_ago
from progress import (
    cravings_today,
    current_streak,
    days_sober,
    day_key,
    goal_progress,
    milestone_progress,
    next_milestone,
    recent_activity,
)
from schemas import CheckIn, Craving, Goal, ProfileData


def check_in(date, mood="good"):
    return CheckIn(date=date, mood=mood, cravings_present="none")


def craving(date, trigger="stress"):
    return Craving(date=date, trigger=trigger, coping_strategy="breathing")


def test_days_sober_same_day_is_zero():
    assert days_sober(NOW, NOW) == 0
    assert days_sober(NOW.replace(hour=0, minute=1), NOW) == 0


def test_days_sober_counts_calendar_days():
    assert days_sober(NOW - timedelta(days=7), NOW) == 7
    # late start yesterday still counts a full day
    assert days_sober(days_ago(1, hour=23), NOW.replace(hour=0, minute=5)) == 1


def test_days_sober_never_negative():
    assert days_sober(NOW + timedelta(days=3), NOW) == 0


def test_naive_timestamps_are_utc():
    naive = datetime(2024, 6, 8, 12, 0)
    assert days_sober(naive, NOW) == 7


def test_day_key_uses_timezone_of_now():
    late = datetime(2024, 6, 14, 23, 30, tzinfo=timezone.utc)
    plus_two = NOW.astimezone(timezone(timedelta(hours=2)))
    assert day_key(late) == datetime(2024, 6, 14).date()
    assert day_key(late, plus_two) == datetime(2024, 6, 15).date()


def test_streak_of_three_consecutive_days():
    check_ins = [check_in(days_ago(0)), check_in(days_ago(1)), check_in(days_ago(2))]
    assert current_streak(check_ins, NOW) == 3


def test_streak_truncated_at_gap():
    check_ins = [check_in(days_ago(0)), check_in(days_ago(1)), check_in(days_ago(3)), check_in(days_ago(4))]
    assert current_streak(check_ins, NOW) == 2


def test_streak_may_end_yesterday():
    check_ins = [check_in(days_ago(1)), check_in(days_ago(2))]
    assert current_streak(check_ins, NOW) == 2


def test_streak_broken_two_days_ago():
    assert current_streak([check_in(days_ago(2)), check_in(days_ago(3))], NOW) == 0


def test_streak_ignores_order_and_same_day_duplicates():
    check_ins = [check_in(days_ago(1)), check_in(days_ago(0, hour=8)), check_in(days_ago(0, hour=20))]
    assert current_streak(check_ins, NOW) == 2


def test_streak_empty():
    assert current_streak([], NOW) == 0


def test_cravings_today():
    cravings = [craving(days_ago(0, hour=1)), craving(days_ago(0, hour=11)), craving(days_ago(1))]
    assert cravings_today(cravings, NOW) == 2


def test_scenario_ten_days_with_three_check_ins():
    data = ProfileData(
        start_date=NOW - timedelta(days=10),
        check_ins=[check_in(days_ago(2)), check_in(days_ago(1)), check_in(days_ago(0))],
    )
    assert days_sober(data.start_date, NOW) == 10
    assert current_streak(data.check_ins, NOW) == 3


def test_next_milestone_and_progress():
    assert next_milestone(0) == 1
    assert next_milestone(7) == 14
    assert next_milestone(400) == 365
    assert milestone_progress(7) == 50.0
    assert milestone_progress(400) == 100.0


def test_recent_activity_newest_first():
    data = ProfileData(
        check_ins=[check_in(days_ago(2), mood="great"), check_in(days_ago(0), mood="okay")],
        cravings=[craving(days_ago(1), trigger="social")],
    )
    activity = recent_activity(data)
    assert [a.kind for a in activity] == ["checkin", "craving", "checkin"]
    assert activity[0].text == "Daily check-in - Mood: Okay"
    assert activity[1].text == "Logged craving - Trigger: Social"


def test_recent_activity_caps_each_kind():
    data = ProfileData(check_ins=[check_in(days_ago(n)) for n in range(8)])
    assert len(recent_activity(data)) == 5


def test_goal_progress_is_capped():
    goal = Goal(id=1, name="A month", target_days=30, created_at=NOW)
    assert goal_progress(goal, 15) == 50.0
    assert goal_progress(goal, 45) == 100.0
