"""
Database helpers

MongoDB connection plus the small document helpers the API uses.
Connection settings come from DATABASE_URL / DATABASE_NAME; when they are
missing `db` stays None and the API reports the database as unavailable.
"""
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.database import Database

load_dotenv()

_client: Optional[MongoClient] = None
db: Optional[Database] = None

database_url = os.getenv("DATABASE_URL")
database_name = os.getenv("DATABASE_NAME")

if database_url and database_name:
    _client = MongoClient(database_url, tz_aware=True)
    db = _client[database_name]


def create_document(collection_name: str, data: Union[BaseModel, dict], database: Optional[Database] = None) -> str:
    """Insert a document, stamping created_at/updated_at. Returns the id as string."""
    target = database if database is not None else db
    if target is None:
        raise RuntimeError("Database not available")

    if isinstance(data, BaseModel):
        doc = data.model_dump()
    else:
        doc = dict(data)

    now = datetime.now(timezone.utc)
    doc.setdefault("created_at", now)
    doc["updated_at"] = now

    result = target[collection_name].insert_one(doc)
    return str(result.inserted_id)


def get_documents(collection_name: str, filter_dict: Optional[Dict[str, Any]] = None, limit: Optional[int] = None,
                  database: Optional[Database] = None) -> List[dict]:
    target = database if database is not None else db
    if target is None:
        return []
    cursor = target[collection_name].find(filter_dict or {})
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def to_str_id(doc: dict) -> dict:
    if not doc:
        return doc
    d = dict(doc)
    if d.get("_id") is not None:
        d["id"] = str(d.pop("_id"))
    return d
