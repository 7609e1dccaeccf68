"""
Director records for board resolutions.

StaticDirectorStore serves seeded meeting data; MongoDirectorStore reads
resolutions from MongoDB and falls back to the seed whenever a stored
resolution is absent or unreadable.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol

from pydantic import ValidationError
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from .models import DirectorRecord, ResolutionRequest

logger = logging.getLogger(__name__)

SEED_MEETING = {
    "companyName": "Demo Pvt Ltd",
    "date": "15/01/2025",
    "time": "11:00 AM",
    "address": "Registered Office, 4th Floor, Nariman Point, Mumbai 400021",
}

SEED_DIRECTORS: List[Dict[str, str]] = [
    {"id": "1", "name": "John Doe", "panNumber": "ABCDE1234F", "email": "john.doe@example.com"},
    {"id": "2", "name": "Priya Sharma", "panNumber": "FGHIJ5678K", "email": "priya.sharma@example.com"},
    {"id": "3", "name": "Rahul Mehta", "panNumber": "KLMNO9012P", "email": "rahul.mehta@example.com"},
]


class DirectorStore(Protocol):
    def get_resolution(self, resolution_id: str) -> ResolutionRequest:
        ...


class StaticDirectorStore:
    """Seeded directors; the requested id is echoed into the resolution."""

    def __init__(self, meeting: Optional[Dict[str, str]] = None, directors: Optional[List[Dict[str, str]]] = None):
        self.meeting = dict(meeting or SEED_MEETING)
        self.directors = [DirectorRecord(**d) for d in (directors or SEED_DIRECTORS)]

    def get_resolution(self, resolution_id: str) -> ResolutionRequest:
        return ResolutionRequest(
            resolutionId=resolution_id,
            directors=list(self.directors),
            **self.meeting,
        )


class MongoDirectorStore:
    """
    Resolutions stored in MongoDB.

    Documents live in the `resolutions` collection:

        {
            "resolutionId": "BR-2025-01",
            "companyName": "...", "date": "...", "time": "...", "address": "...",
            "directors": [{"id": "1", "name": "...", "panNumber": "...", "email": "..."}]
        }

    Args:
        mongodb_uri: MongoDB connection URI
        db_name: Database name
        fallback: Store used when the id is not found or MongoDB is unreachable
    """

    def __init__(
        self,
        mongodb_uri: str,
        db_name: str = "declarations",
        fallback: Optional[StaticDirectorStore] = None,
        collection: Any = None,
    ):
        if collection is None:
            client = MongoClient(mongodb_uri, serverSelectionTimeoutMS=5000)
            collection = client[db_name]["resolutions"]
        self.collection = collection
        self.fallback = fallback or StaticDirectorStore()

    def get_resolution(self, resolution_id: str) -> ResolutionRequest:
        try:
            doc = self.collection.find_one({"resolutionId": resolution_id}, {"_id": 0})
        except PyMongoError as e:
            logger.warning(f"MongoDB lookup for resolution {resolution_id} failed, using seed data: {e}")
            doc = None

        if not doc:
            logger.info(f"Resolution {resolution_id} not stored, using seed data")
            return self.fallback.get_resolution(resolution_id)

        try:
            return ResolutionRequest(**doc)
        except ValidationError as e:
            logger.warning(f"Stored resolution {resolution_id} is malformed, using seed data: {e}")
            return self.fallback.get_resolution(resolution_id)


def build_director_store(mongodb_uri: Optional[str], db_name: str = "declarations") -> DirectorStore:
    """MongoDirectorStore when a URI is configured, else StaticDirectorStore."""
    if mongodb_uri:
        logger.info(f"Director records backed by MongoDB database '{db_name}'")
        return MongoDirectorStore(mongodb_uri, db_name)
    return StaticDirectorStore()
