"""
Milestone, achievement and goal evaluation.

`evaluate` is pure: it never mutates its inputs and returns the grown
sets together with the events for items unlocked by this call only.
Re-running it on its own output emits nothing.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from progress import current_streak, days_sober
from schemas import Goal, ProfileData

MILESTONE_DAYS = [1, 3, 7, 14, 30, 60, 90, 180, 365]


@dataclass(frozen=True)
class Snapshot:
    days_sober: int
    current_streak: int
    check_in_count: int


@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    description: str
    icon: str
    condition: Callable[[Snapshot], bool]


ACHIEVEMENTS = [
    Achievement("first_day", "First Day", "Completed your first day!", "🌱", lambda s: s.days_sober >= 1),
    Achievement("one_week", "One Week Strong", "One week down!", "⭐", lambda s: s.days_sober >= 7),
    Achievement("one_month", "One Month Champion", "30 days achieved!", "👑", lambda s: s.days_sober >= 30),
    Achievement("week_streak", "Week Warrior", "7-day check-in streak!", "🔥", lambda s: s.current_streak >= 7),
    Achievement("checkin_10", "Consistent", "10 check-ins completed!", "📝", lambda s: s.check_in_count >= 10),
]


@dataclass(frozen=True)
class Unlock:
    kind: str  # milestone | achievement | goal
    key: str
    name: str
    description: str
    icon: str = "🏆"


@dataclass
class EvaluationResult:
    milestones: List[int]
    achievements: List[str]
    goals: List[Goal]
    unlocked: List[Unlock] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.unlocked)

    def apply(self, data: ProfileData) -> ProfileData:
        return data.model_copy(update={
            "milestones": list(self.milestones),
            "achievements": list(self.achievements),
            "goals": list(self.goals),
        })


def snapshot(data: ProfileData, now: Optional[datetime] = None) -> Snapshot:
    return Snapshot(
        days_sober=days_sober(data.start_date, now),
        current_streak=current_streak(data.check_ins, now),
        check_in_count=len(data.check_ins),
    )


def evaluate(snap: Snapshot, milestones: Sequence[int], achievements: Sequence[str],
             goals: Sequence[Goal] = ()) -> EvaluationResult:
    new_milestones = list(milestones)
    new_achievements = list(achievements)
    new_goals = []
    unlocked = []

    for day in MILESTONE_DAYS:
        if day in new_milestones:
            continue
        if snap.days_sober >= day:
            new_milestones.append(day)
            unlocked.append(Unlock("milestone", str(day), f"{day} Days", f"You reached {day} days!"))

    for achievement in ACHIEVEMENTS:
        if achievement.id in new_achievements:
            continue
        if achievement.condition(snap):
            new_achievements.append(achievement.id)
            unlocked.append(Unlock("achievement", achievement.id, achievement.name,
                                   achievement.description, achievement.icon))

    for goal in goals:
        if not goal.achieved and snap.days_sober >= goal.target_days:
            goal = goal.model_copy(update={"achieved": True})
            unlocked.append(Unlock("goal", str(goal.id), goal.name,
                                   f"Reached your {goal.target_days}-day goal!", "🎯"))
        new_goals.append(goal)

    return EvaluationResult(new_milestones, new_achievements, new_goals, unlocked)


def evaluate_profile(data: ProfileData, now: Optional[datetime] = None) -> EvaluationResult:
    return evaluate(snapshot(data, now), data.milestones, data.achievements, data.goals)
