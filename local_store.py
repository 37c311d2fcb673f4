"""
Local fallback store.

A JSON file holding a small key/value map, the way a browser's
localStorage would. Two keys are used:

    "profiles"        {profile_id: {"id", "name", "createdAt", "data"}}
    "currentProfile"  profile id string

Every write rewrites the file through a temp file so a crash never
leaves it half-written. Any I/O or decode failure raises LocalStoreError.
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from errors import LocalStoreError
from schemas import Profile, ProfileData

logger = logging.getLogger(__name__)

PROFILES_KEY = "profiles"
CURRENT_PROFILE_KEY = "currentProfile"


class LocalStore:
    def __init__(self, path: Path):
        self.path = Path(path)
        self._items: Dict[str, Any] = self._read()

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            logger.info("Local store %s not found, starting empty", self.path)
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                items = json.load(f)
        except (OSError, ValueError) as e:
            raise LocalStoreError(f"Cannot read local store {self.path}: {e}") from e
        if not isinstance(items, dict):
            raise LocalStoreError(f"Local store {self.path} is not a JSON object")
        return items

    def _flush(self) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(self._items, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except OSError as e:
            raise LocalStoreError(f"Cannot write local store {self.path}: {e}") from e

    # Generic key/value access

    def get(self, key: str, default: Any = None) -> Any:
        return self._items.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._items[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        if self._items.pop(key, None) is not None:
            self._flush()

    # Profiles map

    def profiles(self) -> Dict[str, Dict[str, Any]]:
        return dict(self.get(PROFILES_KEY) or {})

    def put_profiles(self, profiles: Dict[str, Dict[str, Any]]) -> None:
        self.set(PROFILES_KEY, profiles)

    def put_profile(self, profile: Profile) -> None:
        profiles = self.profiles()
        entry = dict(profiles.get(profile.id) or {})
        entry.update({"id": profile.id, "name": profile.name, "createdAt": profile.to_json()["createdAt"]})
        entry.setdefault("data", None)
        profiles[profile.id] = entry
        self.put_profiles(profiles)

    def drop_profile(self, profile_id: str) -> None:
        profiles = self.profiles()
        if profiles.pop(profile_id, None) is not None:
            self.put_profiles(profiles)

    def profile_data(self, profile_id: str) -> Optional[ProfileData]:
        entry = self.profiles().get(profile_id)
        if not entry or not entry.get("data"):
            return None
        return ProfileData.model_validate(entry["data"])

    def put_profile_data(self, profile_id: str, data: ProfileData) -> None:
        profiles = self.profiles()
        entry = dict(profiles.get(profile_id) or {"id": profile_id})
        entry["data"] = data.to_json()
        profiles[profile_id] = entry
        self.put_profiles(profiles)

    # Current profile pointer

    def current_profile(self) -> Optional[str]:
        return self.get(CURRENT_PROFILE_KEY) or None

    def set_current_profile(self, profile_id: Optional[str]) -> None:
        if profile_id:
            self.set(CURRENT_PROFILE_KEY, profile_id)
        else:
            self.remove(CURRENT_PROFILE_KEY)
