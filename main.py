import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from pymongo.errors import PyMongoError

from achievements import evaluate_profile
from database import db, create_document
import progress
from profiles import new_profile_id
from schemas import CheckIn, Craving, Profile, ProfileData, ProfileDataPatch

logger = logging.getLogger(__name__)

app = FastAPI(title="Sobriety Tracker API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Helpers

def _collection(name: str):
    if db is None:
        raise HTTPException(status_code=500, detail="Database not available")
    return db[name]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _name_taken(name: str, exclude: Optional[str] = None) -> bool:
    flt: Dict[str, Any] = {"name": {"$regex": f"^{re.escape(name)}$", "$options": "i"}}
    if exclude:
        flt["id"] = {"$ne": exclude}
    return _collection("profile").find_one(flt) is not None


def _ensure_profile(profile_id: str) -> Dict[str, Any]:
    doc = _collection("profile").find_one({"id": profile_id})
    if not doc:
        raise HTTPException(status_code=404, detail="Profile not found")
    return doc


def _touch(profile_id: str):
    _collection("profile").update_one({"id": profile_id}, {"$set": {"lastAccessed": _now()}})


def _profile_out(doc: Dict[str, Any]) -> Dict[str, Any]:
    return Profile.model_validate(doc).to_json()


def _store_data(profile_id: str, data: ProfileData):
    doc = data.model_dump(by_alias=True)
    doc["profileId"] = profile_id
    doc["updated_at"] = _now()
    _collection("profiledata").replace_one({"profileId": profile_id}, doc, upsert=True)


def _load_data(profile_id: str, create: bool = True) -> ProfileData:
    doc = _collection("profiledata").find_one({"profileId": profile_id})
    if doc:
        return ProfileData.model_validate(doc)
    data = ProfileData(start_date=_now())
    if create:
        _store_data(profile_id, data)
    return data


# Request models for endpoints
class ProfileRequest(BaseModel):
    name: Optional[str] = None


class DataRequest(BaseModel):
    data: Optional[ProfileDataPatch] = None


# Basic routes
@app.get("/")
def read_root():
    return {"message": "Sobriety Tracker API"}


@app.get("/api/health")
def health():
    if db is None:
        raise HTTPException(status_code=503, detail="Database not configured")
    try:
        db.command("ping")
    except Exception as e:
        logger.warning("Database ping failed: %s", e)
        raise HTTPException(status_code=503, detail="Database not reachable")
    return {"status": "ok"}


@app.get("/test")
def test_database():
    """Diagnostics: database connection and document counts per collection."""
    report: Dict[str, Any] = {
        "backend": "running",
        "database": None,
        "connected": False,
        "counts": {},
    }
    if db is None:
        return report
    report["database"] = db.name
    try:
        report["counts"] = {name: db[name].count_documents({}) for name in ("profile", "profiledata")}
        report["connected"] = True
    except PyMongoError as e:
        logger.warning("Diagnostics query failed: %s", e)
        report["error"] = str(e)[:80]
    return report


@app.get("/schema")
def get_schema():
    return {
        "profile": Profile.model_json_schema(),
        "profiledata": ProfileData.model_json_schema(),
        "checkin": CheckIn.model_json_schema(),
        "craving": Craving.model_json_schema(),
    }


# Profiles
@app.get("/api/profiles")
def list_profiles():
    docs = _collection("profile").find().sort("createdAt", -1)
    return [_profile_out(d) for d in docs]


@app.get("/api/profiles/{profile_id}")
def get_profile(profile_id: str):
    return _profile_out(_ensure_profile(profile_id))


@app.post("/api/profiles", status_code=201)
def create_profile(payload: ProfileRequest):
    name = (payload.name or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="Profile name is required")
    if _name_taken(name):
        raise HTTPException(status_code=400, detail="Profile with this name already exists")

    now = _now()
    profile = Profile(id=new_profile_id(), name=name, created_at=now, last_accessed=now)
    create_document("profile", profile)
    _store_data(profile.id, ProfileData(start_date=now))
    logger.info("Created profile %s", profile.id)
    return profile.to_json()


@app.put("/api/profiles/{profile_id}")
def update_profile(profile_id: str, payload: ProfileRequest):
    _ensure_profile(profile_id)
    update: Dict[str, Any] = {"lastAccessed": _now()}
    name = (payload.name or "").strip()
    if name:
        if _name_taken(name, exclude=profile_id):
            raise HTTPException(status_code=400, detail="Profile with this name already exists")
        update["name"] = name
    _collection("profile").update_one({"id": profile_id}, {"$set": update})
    return _profile_out(_ensure_profile(profile_id))


@app.delete("/api/profiles/{profile_id}")
def delete_profile(profile_id: str):
    _ensure_profile(profile_id)
    _collection("profile").delete_one({"id": profile_id})
    _collection("profiledata").delete_one({"profileId": profile_id})
    logger.info("Deleted profile %s", profile_id)
    return {"message": "Profile deleted successfully"}


# Profile data
@app.get("/api/data/{profile_id}")
def get_profile_data(profile_id: str):
    data = _load_data(profile_id)
    _touch(profile_id)
    return data.to_json()


@app.put("/api/data/{profile_id}")
def update_profile_data(profile_id: str, payload: DataRequest):
    if payload.data is None:
        raise HTTPException(status_code=400, detail="Data is required")
    stored = _load_data(profile_id, create=False)
    # Each field present in the payload replaces the stored one wholesale
    update = {k: v for k, v in payload.data if v is not None}
    data = stored.model_copy(update=update)
    _store_data(profile_id, data)
    _touch(profile_id)
    return data.to_json()


@app.post("/api/data/{profile_id}/checkin")
def add_check_in(profile_id: str, payload: CheckIn):
    data = _load_data(profile_id, create=False)
    today = progress.day_key(payload.date)
    check_ins = [c for c in data.check_ins if progress.day_key(c.date, payload.date) != today]
    check_ins.append(payload)
    data = data.model_copy(update={"check_ins": check_ins, "last_check_in": payload.date})
    _store_data(profile_id, data)
    return data.to_json()


@app.post("/api/data/{profile_id}/craving")
def add_craving(profile_id: str, payload: Craving):
    data = _load_data(profile_id, create=False)
    data = data.model_copy(update={"cravings": data.cravings + [payload]})
    _store_data(profile_id, data)
    return data.to_json()


# Dashboard
@app.get("/api/data/{profile_id}/dashboard")
def dashboard(profile_id: str):
    _ensure_profile(profile_id)
    data = _load_data(profile_id)
    result = evaluate_profile(data)
    if result.changed:
        data = result.apply(data)
        _store_data(profile_id, data)

    now = _now()
    days = progress.days_sober(data.start_date, now)
    return {
        "stats": {
            "days_sober": days,
            "current_streak": progress.current_streak(data.check_ins, now),
            "cravings_today": progress.cravings_today(data.cravings, now),
            "next_milestone": progress.next_milestone(days),
            "progress": progress.milestone_progress(days),
        },
        "milestones": sorted(data.milestones),
        "achievements": data.achievements,
        "unlocked": [
            {"kind": u.kind, "key": u.key, "name": u.name, "description": u.description, "icon": u.icon}
            for u in result.unlocked
        ],
    }


if __name__ == "__main__":
    import uvicorn

    from config import load_settings, setup_logging

    settings = load_settings()
    setup_logging(settings.log_level)
    uvicorn.run(app, host=settings.server.host, port=settings.server.port)
