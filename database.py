"""
MongoDB access helpers

The database handle is created once from Settings and carried on app.state;
route handlers receive it through the get_db dependency.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Request
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

from config import Settings
from errors import NotFound
from schemas import JOB_COLLECTION, POST_COLLECTION, USER_COLLECTION

logger = logging.getLogger(__name__)

NEWEST_FIRST = [("createdAt", DESCENDING), ("_id", DESCENDING)]

# Never serialized, wherever they appear in a document
PRIVATE_FIELDS = frozenset({"passwordHash"})
PRIVATE_PROJECTION = {field: False for field in PRIVATE_FIELDS}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_database(settings: Settings) -> Database:
    client = MongoClient(settings.database_url)
    logger.info("Using MongoDB database %s", settings.database_name)
    return client[settings.database_name]


def ensure_indexes(db: Database):
    users = db[USER_COLLECTION]
    users.create_index("email", unique=True)
    # sparse: users without a wallet leave the field out and never collide
    users.create_index("walletAddress", unique=True, sparse=True)
    users.create_index([("createdAt", DESCENDING)])

    jobs = db[JOB_COLLECTION]
    jobs.create_index("requiredSkills")
    jobs.create_index("location")
    jobs.create_index("jobType")
    jobs.create_index([("status", ASCENDING), ("createdAt", DESCENDING)])
    jobs.create_index("postedBy")

    posts = db[POST_COLLECTION]
    posts.create_index("author")
    posts.create_index([("createdAt", DESCENDING)])


def get_db(request: Request) -> Database:
    return request.app.state.db


def parse_object_id(value: str, message: str = "Not found") -> ObjectId:
    """Ids that cannot be ObjectIds can never match a document."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise NotFound(message)


def create_document(db: Database, collection_name: str, data: Union[BaseModel, dict]) -> dict:
    """Insert a document stamped with createdAt/updatedAt and return it with its _id."""
    if isinstance(data, BaseModel):
        data_dict = data.to_mongo() if hasattr(data, "to_mongo") else data.model_dump()
    else:
        data_dict = data.copy()
    now = utcnow()
    data_dict.setdefault("createdAt", now)
    data_dict["updatedAt"] = now
    result = db[collection_name].insert_one(data_dict)
    return {**data_dict, "_id": result.inserted_id}


def get_documents(db: Database, collection_name: str, filter_dict: Optional[dict] = None,
                  limit: Optional[int] = None, sort: Sequence[Tuple[str, int]] = NEWEST_FIRST,
                  projection: Optional[dict] = None) -> List[dict]:
    cursor = db[collection_name].find(filter_dict or {}, projection).sort(list(sort))
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def find_page(db: Database, collection_name: str, query: dict, skip: int, limit: int) -> Tuple[List[dict], int]:
    """One page of matches, newest first, plus the total match count."""
    collection = db[collection_name]
    docs = list(collection.find(query).sort(NEWEST_FIRST).skip(skip).limit(limit))
    total = collection.count_documents(query)
    return docs, total


def populate(db: Database, docs: Iterable[dict], path: str, fields: Sequence[str]) -> list:
    """
    Replace user references at ``path`` with a summary of the referenced user.

    ``path`` is either a top-level key ("author") or a key inside an embedded
    list ("comments.user"). Only ``fields`` are fetched, so the password hash
    is never loaded. References to users that no longer exist become None.
    """
    docs = list(docs)
    head, _, tail = path.partition(".")
    slots = []
    for doc in docs:
        if tail:
            slots.extend((item, tail) for item in doc.get(head) or [])
        else:
            slots.append((doc, head))

    ids = {container[key] for container, key in slots if isinstance(container.get(key), ObjectId)}
    if not ids:
        return docs

    projection = {field: True for field in fields if field not in PRIVATE_FIELDS}
    users: Dict[ObjectId, dict] = {
        u["_id"]: u for u in db[USER_COLLECTION].find({"_id": {"$in": list(ids)}}, projection)
    }
    for container, key in slots:
        ref = container.get(key)
        if isinstance(ref, ObjectId):
            container[key] = users.get(ref)
    return docs


def to_public(doc):
    """Convert Mongo documents to JSON-serializable values, dropping private fields."""
    if isinstance(doc, list):
        return [to_public(item) for item in doc]
    if isinstance(doc, ObjectId):
        return str(doc)
    if not isinstance(doc, dict) or not doc:
        return doc
    d = {}
    for key, value in doc.items():
        if key in PRIVATE_FIELDS:
            continue
        if key == "_id":
            d["id"] = to_public(value)
        else:
            d[key] = to_public(value)
    return d
