"""
Profile data reconciliation between the remote data service and the
local store.

Writes are local-durable, remote-best-effort: the local store is written
first and its failure is fatal; a remote failure only flips the session
to local-only. There is no promotion back to remote within a session,
only a fresh `connectivity_probe()` at the next initialization.

Callers await each load/save before issuing the next one for a profile.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from api_client import RemoteDataService, RemoteServiceError
from local_store import LocalStore
from schemas import ProfileData

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class SessionState:
    remote_healthy: bool = False
    current_profile_id: Optional[str] = None


@dataclass(frozen=True)
class SaveResult:
    local: bool
    remote: bool


class ProfileDataReconciler:
    def __init__(self, local: LocalStore, remote: Optional[RemoteDataService] = None,
                 session: Optional[SessionState] = None):
        self.local = local
        self.remote = remote
        self.session = session or SessionState()
        self.session.current_profile_id = local.current_profile()

    @property
    def remote_healthy(self) -> bool:
        return self.session.remote_healthy

    def connectivity_probe(self) -> bool:
        if self.remote is None:
            self.session.remote_healthy = False
        else:
            try:
                self.session.remote_healthy = self.remote.health()
            except RemoteServiceError as e:
                logger.warning("Remote data service unreachable, using local store only: %s", e)
                self.session.remote_healthy = False
        logger.info("Remote data service %s", "connected" if self.session.remote_healthy else "not available")
        return self.session.remote_healthy

    def call_remote(self, action: str, fn: Callable[[RemoteDataService], T]) -> Optional[T]:
        """Run `fn` against the remote when healthy; None (and downgrade) on failure."""
        if not self.session.remote_healthy or self.remote is None:
            return None
        try:
            return fn(self.remote)
        except RemoteServiceError as e:
            logger.warning("Remote %s failed, switching to local store for this session: %s", action, e)
            self.session.remote_healthy = False
            return None

    # Current profile pointer; the local store is the source of truth

    @property
    def current_profile_id(self) -> Optional[str]:
        return self.session.current_profile_id

    def set_current_profile(self, profile_id: Optional[str]) -> None:
        self.local.set_current_profile(profile_id)
        self.session.current_profile_id = profile_id

    # Profile data

    def load(self, profile_id: str) -> ProfileData:
        data = self.call_remote("load", lambda r: r.get_profile_data(profile_id))
        if data is not None:
            self.local.put_profile_data(profile_id, data)
            logger.debug("Loaded %s from remote", profile_id)
            return data

        data = self.local.profile_data(profile_id)
        if data is not None:
            logger.debug("Loaded %s from local store", profile_id)
            return data
        return ProfileData()

    def save(self, profile_id: str, data: ProfileData) -> SaveResult:
        self.local.put_profile_data(profile_id, data)
        synced = self.call_remote("save", lambda r: r.replace_profile_data(profile_id, data))
        logger.debug("Saved %s (remote=%s)", profile_id, synced is not None)
        return SaveResult(local=True, remote=synced is not None)

    def delete(self, profile_id: str) -> None:
        self.local.drop_profile(profile_id)
        self.call_remote("delete", lambda r: r.delete_profile(profile_id))
