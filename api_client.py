"""httpx client for the remote data service (see main.py for the routes)."""
import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from schemas import CheckIn, Craving, Profile, ProfileData

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class RemoteServiceError(Exception):
    """Transport failure, non-2xx answer or unreadable body from the remote data service."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _parse(model: Type[M], payload: Any) -> M:
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise RemoteServiceError(f"Unexpected {model.__name__} from remote: {e}") from e


class RemoteDataService:
    def __init__(self, base_url: str = "http://127.0.0.1:8000/api", timeout: float = 5.0,
                 client: Optional[httpx.Client] = None):
        self.client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        self.client.close()

    def request(self, method: str, endpoint: str, **kwargs) -> Any:
        try:
            response = self.client.request(method, endpoint, **kwargs)
        except httpx.HTTPError as e:
            raise RemoteServiceError(f"{method} {endpoint} failed: {e}") from e
        logger.debug("%s %s -> %s", method, endpoint, response.status_code)
        if not response.is_success:
            raise RemoteServiceError(
                f"{method} {endpoint} answered {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise RemoteServiceError(
                f"{method} {endpoint} answered non-JSON body: {response.text[:200]}",
                status_code=response.status_code,
            ) from e

    def health(self) -> bool:
        self.request("GET", "/health")
        return True

    # Profiles

    def list_profiles(self) -> List[Profile]:
        payload = self.request("GET", "/profiles")
        if not isinstance(payload, list):
            raise RemoteServiceError(f"Unexpected profile list from remote: {str(payload)[:200]}")
        return [_parse(Profile, p) for p in payload]

    def get_profile(self, profile_id: str) -> Profile:
        return _parse(Profile, self.request("GET", f"/profiles/{profile_id}"))

    def create_profile(self, name: str) -> Profile:
        return _parse(Profile, self.request("POST", "/profiles", json={"name": name}))

    def rename_profile(self, profile_id: str, name: str) -> Profile:
        return _parse(Profile, self.request("PUT", f"/profiles/{profile_id}", json={"name": name}))

    def delete_profile(self, profile_id: str) -> None:
        self.request("DELETE", f"/profiles/{profile_id}")

    # Profile data

    def get_profile_data(self, profile_id: str) -> ProfileData:
        return _parse(ProfileData, self.request("GET", f"/data/{profile_id}"))

    def replace_profile_data(self, profile_id: str, data: ProfileData) -> ProfileData:
        payload: Dict[str, Any] = {"data": data.to_json()}
        return _parse(ProfileData, self.request("PUT", f"/data/{profile_id}", json=payload))

    def add_check_in(self, profile_id: str, check_in: CheckIn) -> ProfileData:
        return _parse(ProfileData, self.request("POST", f"/data/{profile_id}/checkin", json=check_in.to_json()))

    def add_craving(self, profile_id: str, craving: Craving) -> ProfileData:
        return _parse(ProfileData, self.request("POST", f"/data/{profile_id}/craving", json=craving.to_json()))
