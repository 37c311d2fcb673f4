"""
Database Schemas for the Sobriety Tracker

Each Pydantic model represents a MongoDB collection or an embedded
document. Collections: "profile" and "profiledata". Field names go over
the wire (and into the local store) in camelCase.
"""
from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _as_aware(value: datetime) -> datetime:
    # Mongo hands back naive UTC datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


Timestamp = Annotated[datetime, AfterValidator(_as_aware)]

Mood = Literal["great", "good", "okay", "struggling", "difficult"]
CravingLevel = Literal["none", "mild", "moderate", "strong"]
Trigger = Literal["stress", "boredom", "social", "emotional", "environmental", "other"]
CopingStrategy = Literal["exercise", "meditation", "breathing", "call_friend", "distraction", "other"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Profile(CamelModel):
    """
    Collection: profile
    A named tracking identity; its data lives in "profiledata"
    """
    id: str = Field(..., description="Profile id, e.g. profile_1718000000000_k3j9x0a1b")
    name: str = Field(..., min_length=1, description="Display name, unique case-insensitively")
    created_at: Timestamp = Field(default_factory=utcnow)
    last_accessed: Optional[Timestamp] = Field(None, description="Touched on every data read/write")


class CheckIn(CamelModel):
    """Once-daily self report. At most one per calendar day."""
    date: Timestamp = Field(default_factory=utcnow)
    mood: Mood
    cravings_present: CravingLevel
    energy_level: int = Field(5, ge=1, le=10)
    gratitude: str = ""
    notes: str = ""


class Craving(CamelModel):
    """Logged urge event. Append-only."""
    date: Timestamp = Field(default_factory=utcnow)
    intensity: int = Field(5, ge=1, le=10)
    trigger: Trigger
    coping_strategy: CopingStrategy
    notes: str = ""


class Goal(CamelModel):
    id: int
    name: str = Field(..., min_length=1)
    target_days: int = Field(..., gt=0)
    created_at: Timestamp = Field(default_factory=utcnow)
    achieved: bool = False


class ProfileData(CamelModel):
    """
    Collection: profiledata
    One per profile, keyed by profileId on the server
    """
    start_date: Timestamp = Field(default_factory=utcnow)
    last_check_in: Optional[Timestamp] = None
    check_ins: List[CheckIn] = Field(default_factory=list)
    cravings: List[Craving] = Field(default_factory=list)
    goals: List[Goal] = Field(default_factory=list)
    milestones: List[int] = Field(default_factory=list)
    achievements: List[str] = Field(default_factory=list)


class ProfileDataPatch(CamelModel):
    """Partial ProfileData; each present field replaces the stored one wholesale."""
    start_date: Optional[Timestamp] = None
    last_check_in: Optional[Timestamp] = None
    check_ins: Optional[List[CheckIn]] = None
    cravings: Optional[List[Craving]] = None
    goals: Optional[List[Goal]] = None
    milestones: Optional[List[int]] = None
    achievements: Optional[List[str]] = None
