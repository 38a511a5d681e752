"""
MongoDB access for the Care.xyz backend.

A single ``Database`` object is created at startup and shared by every
request. The connection is opened lazily on first use; at that point the
``services`` collection is seeded with the default care services if empty.
"""

import logging
import os
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote_plus

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING, MongoClient
from pymongo.errors import ConfigurationError, ConnectionFailure
from pymongo.server_api import ServerApi

logger = logging.getLogger(__name__)

DATABASE_NAME = os.getenv("DATABASE_NAME", "care_xyz")
DB_CLUSTER = os.getenv("DB_CLUSTER", "cluster0.l2cobj0.mongodb.net")

SERVICES = "services"
USERS = "users"
BOOKINGS = "bookings"

SEED_SERVICES = [
    {
        "title": "Baby Care",
        "description": (
            "Professional and loving babysitting services for your little ones. "
            "Our trained caregivers ensure your children are safe, happy, and engaged "
            "with age-appropriate activities throughout the day."
        ),
        "image": "https://i.ibb.co/placeholder-baby-care.jpg",
        "chargePerHour": 150,
        "chargePerDay": 1200,
        "features": [
            "Certified child caregivers",
            "Age-appropriate activities",
            "Meal preparation for kids",
            "Safety-first environment",
            "Daily progress reports",
        ],
        "category": "baby-care",
    },
    {
        "title": "Elderly Service",
        "description": (
            "Compassionate elderly care services to support your senior family members. "
            "We provide dedicated caregivers who assist with daily activities, medication "
            "reminders, and companionship to ensure comfort and dignity."
        ),
        "image": "https://i.ibb.co/placeholder-elderly-care.jpg",
        "chargePerHour": 200,
        "chargePerDay": 1500,
        "features": [
            "Experienced elderly caregivers",
            "Medication management",
            "Mobility assistance",
            "Companionship and emotional support",
            "Health monitoring",
        ],
        "category": "elderly",
    },
    {
        "title": "Sick People Service",
        "description": (
            "Specialized home care for sick or recovering individuals. Our skilled "
            "caregivers provide medical assistance, post-surgery care, and rehabilitation "
            "support in the comfort of your home."
        ),
        "image": "https://i.ibb.co/placeholder-sick-care.jpg",
        "chargePerHour": 250,
        "chargePerDay": 1800,
        "features": [
            "Trained medical caregivers",
            "Post-surgery recovery care",
            "Medication administration",
            "Vital signs monitoring",
            "Rehabilitation support",
        ],
        "category": "sick-people",
    },
]


class DatabaseUnavailable(ConnectionError):
    """Raised when the MongoDB server cannot be reached."""


def database_url_from_env() -> Optional[str]:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    user = os.getenv("DB_USER")
    password = os.getenv("DB_PASS")
    if not (user and password):
        return None
    return f"mongodb+srv://{quote_plus(user)}:{quote_plus(password)}@{DB_CLUSTER}/?appName=Cluster0"


def now() -> datetime:
    return datetime.now(timezone.utc)


def id_filter(value: str) -> Dict[str, Any]:
    """Filter on ``_id``; malformed ids yield a filter matching nothing."""
    try:
        return {"_id": ObjectId(value)}
    except (InvalidId, TypeError):
        return {"_id": {"$in": []}}


class Database:
    def __init__(self, url: Optional[str] = None, name: str = DATABASE_NAME, client=None):
        self.url = url
        self.name = name
        self._client = client
        self._db = None
        self._lock = threading.Lock()

    @classmethod
    def from_env(cls) -> "Database":
        return cls(url=database_url_from_env())

    @property
    def connected(self) -> bool:
        return self._db is not None

    def ensure_connected(self) -> None:
        """Open the connection and seed defaults on first call; no-op afterwards."""
        if self._db is not None:
            return
        with self._lock:
            if self._db is not None:
                return
            try:
                client = self._client or MongoClient(
                    self.url,
                    server_api=ServerApi("1", strict=True, deprecation_errors=True),
                )
                db = client[self.name]
                self._seed_services(db[SERVICES])
            except (ConnectionFailure, ConfigurationError) as e:
                raise DatabaseUnavailable(f"Could not connect to MongoDB: {e}") from e
            self._client = client
            self._db = db
            logger.info("Connected to MongoDB database %s", self.name)

    def _seed_services(self, services) -> None:
        if services.estimated_document_count() > 0:
            return
        services.insert_many([dict(s) for s in SEED_SERVICES])
        logger.info("Seeded %d default services", len(SEED_SERVICES))

    def collection(self, name: str):
        self.ensure_connected()
        return self._db[name]

    @property
    def services(self):
        return self.collection(SERVICES)

    @property
    def users(self):
        return self.collection(USERS)

    @property
    def bookings(self):
        return self.collection(BOOKINGS)

    def list_collection_names(self) -> List[str]:
        self.ensure_connected()
        return self._db.list_collection_names()

    def create_document(self, collection_name: str, data: Dict[str, Any]):
        """Insert ``data`` stamped with ``createdAt``; returns the driver result."""
        doc = dict(data)
        doc["createdAt"] = now()
        return self.collection(collection_name).insert_one(doc)

    def get_documents(self, collection_name: str, filter_dict: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Documents matching ``filter_dict``, newest first."""
        cursor = self.collection(collection_name).find(filter_dict or {}).sort("createdAt", DESCENDING)
        return [serialize(d) for d in cursor]


# Helpers to convert Mongo documents and driver results to JSON-friendly dicts

def serialize(doc):
    if not doc:
        return doc
    doc = dict(doc)
    if isinstance(doc.get("_id"), ObjectId):
        doc["_id"] = str(doc["_id"])
    return doc


def _str_id(value):
    return str(value) if value is not None else None


def insert_result(result) -> Dict[str, Any]:
    return {"acknowledged": result.acknowledged, "insertedId": _str_id(result.inserted_id)}


def update_result(result) -> Dict[str, Any]:
    return {
        "acknowledged": result.acknowledged,
        "matchedCount": result.matched_count,
        "modifiedCount": result.modified_count,
        "upsertedCount": 1 if result.upserted_id is not None else 0,
        "upsertedId": _str_id(result.upserted_id),
    }


def delete_result(result) -> Dict[str, Any]:
    return {"acknowledged": result.acknowledged, "deletedCount": result.deleted_count}
