"""
MongoDB access for the remote data service

`db` is None when DATABASE_URL is not set; routes answer 500 in that case.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel
from pymongo import MongoClient

from config import load_settings

logger = logging.getLogger(__name__)

_settings = load_settings().database

client: Optional[MongoClient] = None
db = None

if _settings.url:
    client = MongoClient(
        _settings.url,
        tz_aware=True,
        serverSelectionTimeoutMS=5000,
        connectTimeoutMS=5000,
        appname="sober-tracker",
    )
    db = client[_settings.name]
    logger.info("MongoDB configured, database %s", _settings.name)
else:
    logger.warning("DATABASE_URL not set, database unavailable")


def create_document(collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
    """Insert a document, stamping created_at/updated_at. Returns the inserted id."""
    if db is None:
        raise RuntimeError("Database not available")
    if isinstance(data, BaseModel):
        doc = data.model_dump(by_alias=True)
    else:
        doc = dict(data)
    now = datetime.now(timezone.utc)
    doc.setdefault("created_at", now)
    doc["updated_at"] = now
    result = db[collection_name].insert_one(doc)
    return str(result.inserted_id)
