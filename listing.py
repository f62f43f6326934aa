"""
Listing queries and pagination

Turns flat, optional request parameters into MongoDB filters. A parameter that
is absent or empty adds no constraint; the sentinel "all" does the same for the
dimensions that accept it.
"""

import math
import re
from typing import List, Optional

from bson import ObjectId
from pydantic import BaseModel

ALL = "all"
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
# skip travels to the server as a signed 64-bit integer
MAX_SKIP = 2 ** 63 - 1
USER_SEARCH_LIMIT = 20


def split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def contains(value: str) -> dict:
    """Case-insensitive literal substring match."""
    return {"$regex": re.escape(value), "$options": "i"}


def _given(value: Optional[str]) -> bool:
    return bool(value) and value != ALL


def build_job_query(q: Optional[str] = None, skills: Optional[str] = None, location: Optional[str] = None,
                    job_type: Optional[str] = None, experience_level: Optional[str] = None) -> dict:
    # closed and draft postings never show up in the public listing
    query = {"status": "active"}

    if q:
        query["$or"] = [
            {"title": contains(q)},
            {"description": contains(q)},
            {"company": contains(q)},
        ]

    wanted = split_csv(skills)
    if wanted:
        query["requiredSkills"] = {"$in": wanted}

    if _given(location):
        query["location"] = contains(location)

    if _given(job_type):
        query["jobType"] = job_type

    if _given(experience_level):
        query["experienceLevel"] = experience_level

    return query


def build_post_query(author: Optional[ObjectId] = None, post_type: Optional[str] = None) -> dict:
    query = {}
    if author is not None:
        query["author"] = author
    if _given(post_type):
        query["postType"] = post_type
    return query


def build_user_query(q: Optional[str] = None, skills: Optional[str] = None) -> dict:
    query = {}
    if q:
        query["$or"] = [{"name": contains(q)}, {"bio": contains(q)}]
    wanted = split_csv(skills)
    if wanted:
        query["skills"] = {"$in": wanted}
    return query


def _positive_int(value, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


class PageRequest(BaseModel):
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def parse(cls, page=None, limit=None) -> "PageRequest":
        """Bad or non-positive values fall back to the defaults instead of failing."""
        limit = min(_positive_int(limit, DEFAULT_LIMIT), MAX_LIMIT)
        page = min(_positive_int(page, DEFAULT_PAGE), MAX_SKIP // limit + 1)
        return cls(page=page, limit=limit)

    def describe(self, returned: int, total: int) -> dict:
        return {
            "current": self.page,
            "total": math.ceil(total / self.limit),
            "hasNext": self.skip + returned < total,
            "hasPrev": self.page > 1,
        }
