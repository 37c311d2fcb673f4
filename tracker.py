"""
Sobriety tracker session.

Ties the registry, the reconciler and the progress functions together
for a presentation layer: it owns the active profile's data, applies
user actions to it and persists each change before returning.
"""
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

import progress
from achievements import Unlock, evaluate_profile
from api_client import RemoteDataService
from config import ClientConfig
from errors import InvalidEntryError
from local_store import LocalStore
from profiles import ProfileRegistry
from schemas import CheckIn, Craving, Goal, Profile, ProfileData, utcnow
from sync import ProfileDataReconciler, SessionState

logger = logging.getLogger(__name__)


@dataclass
class Dashboard:
    days_sober: int = 0
    current_streak: int = 0
    cravings_today: int = 0
    next_milestone: int = progress.PROGRESS_MILESTONES[0]
    milestone_progress: float = 0.0
    milestones: List[int] = field(default_factory=list)
    achievements: List[str] = field(default_factory=list)
    recent_activity: List[progress.Activity] = field(default_factory=list)


class SobrietyTracker:
    def __init__(self, reconciler: ProfileDataReconciler, clock=utcnow):
        self.reconciler = reconciler
        self.registry = ProfileRegistry(reconciler)
        self.clock = clock
        self.data = ProfileData()

    @classmethod
    def from_config(cls, config: ClientConfig) -> "SobrietyTracker":
        remote = RemoteDataService(config.api_base_url, timeout=config.remote_timeout)
        return cls(ProfileDataReconciler(LocalStore(config.local_store_path), remote, SessionState()))

    def close(self) -> None:
        if self.reconciler.remote is not None:
            self.reconciler.remote.close()

    def __enter__(self) -> "SobrietyTracker":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def initialize(self) -> None:
        self.reconciler.connectivity_probe()
        self.registry.load()
        self._reload_current()
        if self.reconciler.remote_healthy:
            logger.info("Connected to backend, data is saved remotely")
        else:
            logger.warning("Backend not available, using local store only")

    def _reload_current(self) -> None:
        profile_id = self.registry.current_id
        self.data = self.reconciler.load(profile_id) if profile_id else ProfileData()

    def _require_profile(self) -> str:
        profile_id = self.registry.current_id
        if not profile_id:
            raise InvalidEntryError("Create or select a profile first", reason="no_profile")
        return profile_id

    def _commit(self, data: ProfileData) -> None:
        profile_id = self._require_profile()
        self.reconciler.save(profile_id, data)
        self.data = data

    # Profiles

    @property
    def profiles(self) -> List[Profile]:
        return self.registry.all()

    def create_profile(self, name: str, switch: bool = False) -> Profile:
        profile = self.registry.create(name, start_date=self.clock())
        if switch or self.registry.current_id is None:
            self.switch_profile(profile.id)
        return profile

    def switch_profile(self, profile_id: str) -> None:
        data = self.registry.switch_to(profile_id, self.data if self.registry.current_id else None)
        if data is not None:
            self.data = data

    def rename_profile(self, profile_id: str, name: str) -> Profile:
        return self.registry.rename(profile_id, name)

    def delete_profile(self, profile_id: str) -> None:
        was_current = profile_id == self.registry.current_id
        data = self.registry.delete(profile_id)
        if was_current:
            self.data = data if data is not None else ProfileData()

    # Entries

    def submit_check_in(self, mood: str, cravings_present: str, energy_level: int = 5,
                        gratitude: Optional[str] = "", notes: Optional[str] = "") -> List[Unlock]:
        self._require_profile()
        now = self.clock()
        try:
            check_in = CheckIn(date=now, mood=mood, cravings_present=cravings_present,
                               energy_level=energy_level, gratitude=(gratitude or "").strip(),
                               notes=(notes or "").strip())
        except ValidationError as e:
            raise InvalidEntryError(f"Invalid check-in: {e}", reason="invalid_check_in") from e

        today = progress.day_key(now, now)
        check_ins = [c for c in self.data.check_ins if progress.day_key(c.date, now) != today]
        check_ins.append(check_in)
        self._commit(self.data.model_copy(update={"check_ins": check_ins, "last_check_in": check_in.date}))
        return self.refresh_progress()

    def log_craving(self, intensity: int, trigger: str, coping_strategy: str, notes: Optional[str] = "") -> Craving:
        self._require_profile()
        try:
            craving = Craving(date=self.clock(), intensity=intensity, trigger=trigger,
                              coping_strategy=coping_strategy, notes=(notes or "").strip())
        except ValidationError as e:
            raise InvalidEntryError(f"Invalid craving: {e}", reason="invalid_craving") from e

        self._commit(self.data.model_copy(update={"cravings": self.data.cravings + [craving]}))
        return craving

    def add_goal(self, name: str, target_days: int) -> Goal:
        self._require_profile()
        name = (name or "").strip()
        if not name or not isinstance(target_days, int) or target_days < 1:
            raise InvalidEntryError("Enter a goal name and a number of days", reason="invalid_goal")

        goal_id = int(time.time() * 1000)
        used = {g.id for g in self.data.goals}
        while goal_id in used:
            goal_id += 1
        goal = Goal(id=goal_id, name=name, target_days=target_days, created_at=self.clock())
        self._commit(self.data.model_copy(update={"goals": self.data.goals + [goal]}))
        return goal

    def delete_goal(self, goal_id: int) -> None:
        self._require_profile()
        goals = [g for g in self.data.goals if g.id != goal_id]
        self._commit(self.data.model_copy(update={"goals": goals}))

    # Derived state

    def refresh_progress(self) -> List[Unlock]:
        """Unlock milestones, achievements and goals; persists only when something changed."""
        if not self.registry.current_id:
            return []
        result = evaluate_profile(self.data, self.clock())
        if result.changed:
            self._commit(result.apply(self.data))
            for unlock in result.unlocked:
                logger.info("Unlocked %s %s", unlock.kind, unlock.key)
        return result.unlocked

    def dashboard(self) -> Dashboard:
        if not self.registry.current_id:
            return Dashboard()
        now = self.clock()
        days = progress.days_sober(self.data.start_date, now)
        return Dashboard(
            days_sober=days,
            current_streak=progress.current_streak(self.data.check_ins, now),
            cravings_today=progress.cravings_today(self.data.cravings, now),
            next_milestone=progress.next_milestone(days),
            milestone_progress=progress.milestone_progress(days),
            milestones=sorted(self.data.milestones),
            achievements=list(self.data.achievements),
            recent_activity=progress.recent_activity(self.data),
        )

    def export(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        local = self.reconciler.local
        return {
            "exportedAt": (now or self.clock()).isoformat(),
            "currentProfile": local.current_profile(),
            "profiles": local.profiles(),
        }
