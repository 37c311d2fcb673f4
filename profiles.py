"""Profile registry: the set of named profiles and the active profile pointer."""
import logging
import random
import string
import time
from datetime import datetime
from typing import Dict, List, Optional

from errors import DuplicateNameError, InvalidEntryError, LastProfileError
from schemas import Profile, ProfileData, utcnow
from sync import ProfileDataReconciler

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_profile_id() -> str:
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"profile_{int(time.time() * 1000)}_{suffix}"


class ProfileRegistry:
    def __init__(self, reconciler: ProfileDataReconciler):
        self.reconciler = reconciler
        self.profiles: Dict[str, Profile] = {}

    @property
    def current_id(self) -> Optional[str]:
        return self.reconciler.current_profile_id

    @property
    def current(self) -> Optional[Profile]:
        return self.profiles.get(self.current_id) if self.current_id else None

    def all(self) -> List[Profile]:
        return list(self.profiles.values())

    def get(self, profile_id: str) -> Optional[Profile]:
        return self.profiles.get(profile_id)

    def load(self) -> List[Profile]:
        """Read profiles from the remote (mirroring them locally) or from the local store."""
        local = self.reconciler.local
        remote_profiles = self.reconciler.call_remote("list profiles", lambda r: r.list_profiles())

        if remote_profiles is not None:
            cached = local.profiles()
            mirrored = {}
            for p in remote_profiles:
                entry = p.to_json()
                entry.pop("lastAccessed", None)
                entry["data"] = (cached.get(p.id) or {}).get("data")
                mirrored[p.id] = entry
            local.put_profiles(mirrored)

        self.profiles = {}
        for pid, entry in local.profiles().items():
            self.profiles[pid] = Profile(
                id=pid,
                name=entry.get("name") or pid,
                created_at=entry.get("createdAt") or utcnow(),
            )

        # A pointer to a profile deleted elsewhere is dropped
        if self.current_id and self.current_id not in self.profiles:
            self.reconciler.set_current_profile(None)
        logger.info("Loaded %d profile(s)", len(self.profiles))
        return self.all()

    def _check_name(self, name: Optional[str], exclude: Optional[str] = None) -> str:
        name = (name or "").strip()
        if not name:
            raise InvalidEntryError("Profile name is required", reason="empty_name")
        for p in self.profiles.values():
            if p.id != exclude and p.name.lower() == name.lower():
                raise DuplicateNameError(f"A profile named {p.name!r} already exists")
        return name

    def create(self, name: str, start_date: Optional[datetime] = None) -> Profile:
        name = self._check_name(name)

        profile = self.reconciler.call_remote("create profile", lambda r: r.create_profile(name))
        if profile is None:
            profile = Profile(id=new_profile_id(), name=name)

        self.profiles[profile.id] = profile
        self.reconciler.local.put_profile(profile)
        self.reconciler.save(profile.id, ProfileData(start_date=start_date or utcnow()))
        logger.info("Created profile %s (%s)", profile.name, profile.id)
        return profile

    def rename(self, profile_id: str, name: str) -> Profile:
        profile = self.profiles.get(profile_id)
        if profile is None:
            raise InvalidEntryError(f"Unknown profile {profile_id}", reason="unknown_profile")
        name = self._check_name(name, exclude=profile_id)

        self.reconciler.call_remote("rename profile", lambda r: r.rename_profile(profile_id, name))
        profile = profile.model_copy(update={"name": name})
        self.profiles[profile_id] = profile
        self.reconciler.local.put_profile(profile)
        return profile

    def switch_to(self, profile_id: str, current_data: Optional[ProfileData] = None) -> Optional[ProfileData]:
        """Persist the active profile's data, then activate `profile_id` and return its data.

        Unknown ids are ignored and None is returned.
        """
        if profile_id not in self.profiles:
            return None
        if self.current_id and current_data is not None and self.current_id in self.profiles:
            self.reconciler.save(self.current_id, current_data)

        self.reconciler.set_current_profile(profile_id)
        logger.info("Switched to profile %s", profile_id)
        return self.reconciler.load(profile_id)

    def delete(self, profile_id: str) -> Optional[ProfileData]:
        """Remove a profile and its data.

        Returns the data of the profile that became active when the
        deleted one was active, else None.
        """
        if profile_id not in self.profiles:
            return None
        if len(self.profiles) == 1:
            raise LastProfileError("Cannot delete the last profile")

        del self.profiles[profile_id]
        self.reconciler.delete(profile_id)
        logger.info("Deleted profile %s", profile_id)

        if self.current_id != profile_id:
            return None
        remaining = next(iter(self.profiles), None)
        if remaining is None:
            self.reconciler.set_current_profile(None)
            return None
        # the deleted profile's data must not be written back
        return self.switch_to(remaining)
