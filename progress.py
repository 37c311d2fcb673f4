"""
Date and streak arithmetic over a profile's records.

All functions are pure and take an explicit `now`. Calendar days are
taken in the timezone of `now`; naive timestamps count as UTC.
"""
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional

from schemas import Goal, ProfileData, utcnow

PROGRESS_MILESTONES = [1, 7, 14, 30, 60, 90, 180, 365]


def day_key(value: datetime, now: Optional[datetime] = None) -> date:
    """Calendar day of `value` as seen from the timezone of `now`."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    if now is not None and now.tzinfo is not None:
        value = value.astimezone(now.tzinfo)
    return value.date()


def _today(now: Optional[datetime]) -> tuple:
    now = now or utcnow()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now, now.date()


def days_sober(start_date: datetime, now: Optional[datetime] = None) -> int:
    now, today = _today(now)
    return max((today - day_key(start_date, now)).days, 0)


def current_streak(check_ins: Iterable, now: Optional[datetime] = None) -> int:
    """Consecutive days with a check-in, ending today or yesterday."""
    now, today = _today(now)
    days = sorted({d for d in (day_key(c.date, now) for c in check_ins) if d <= today}, reverse=True)

    streak = 0
    anchor = today
    # today's check-in may still be pending
    if days and (today - days[0]).days == 1:
        anchor = days[0]
    for day in days:
        gap = (anchor - day).days
        if gap == streak:
            streak += 1
        elif gap > streak:
            break
    return streak


def cravings_today(cravings: Iterable, now: Optional[datetime] = None) -> int:
    now, today = _today(now)
    return sum(1 for c in cravings if day_key(c.date, now) == today)


def next_milestone(days: int) -> int:
    return next((m for m in PROGRESS_MILESTONES if m > days), PROGRESS_MILESTONES[-1])


def milestone_progress(days: int) -> float:
    return min(days / next_milestone(days) * 100, 100.0)


def goal_progress(goal: Goal, days: int) -> float:
    return min(days / goal.target_days * 100, 100.0)


@dataclass(frozen=True)
class Activity:
    kind: str
    date: datetime
    text: str


def _label(value: str) -> str:
    return value[:1].upper() + value[1:].replace("_", " ")


def recent_activity(data: ProfileData, limit: int = 10) -> List[Activity]:
    """Latest check-ins and cravings (5 of each at most), newest first."""
    check_ins = sorted(data.check_ins, key=lambda c: c.date, reverse=True)[:5]
    cravings = sorted(data.cravings, key=lambda c: c.date, reverse=True)[:5]

    activities = [Activity("checkin", c.date, f"Daily check-in - Mood: {_label(c.mood)}") for c in check_ins]
    activities += [Activity("craving", c.date, f"Logged craving - Trigger: {_label(c.trigger)}") for c in cravings]
    activities.sort(key=lambda a: a.date, reverse=True)
    return activities[:limit]
