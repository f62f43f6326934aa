"""
Writes against job postings and social posts.

Validation runs before anything is written and reports every violated
constraint at once. Apply-once and like toggling are single conditional
updates on the parent document, so two concurrent requests can never both
see the old state and both append.
"""

import logging
from typing import Dict, List, Optional

from bson import ObjectId
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from pymongo import ReturnDocument
from pymongo.database import Database

from database import create_document, populate, utcnow
from errors import AlreadyApplied, ConcurrentUpdate, EmptyContent, NotFound, ValidationError, field_errors
from schemas import (
    JOB_COLLECTION,
    POST_COLLECTION,
    Application,
    Comment,
    JobPosting,
    Like,
    SocialPost,
)

logger = logging.getLogger(__name__)

JOB_REQUIRED_FIELDS = ("title", "description", "company", "jobType", "experienceLevel")
# Set by the server, never taken from the request body
JOB_SERVER_FIELDS = ("postedBy", "applicants", "status", "_id", "id", "createdAt", "updatedAt")
POST_SERVER_FIELDS = ("author", "likes", "comments", "_id", "id", "createdAt", "updatedAt")

COMMENT_MAX_LENGTH = 500
TOGGLE_ATTEMPTS = 5


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _merge(errors: List[Dict[str, str]], exc: PydanticValidationError) -> List[Dict[str, str]]:
    reported = {e["field"] for e in errors}
    return errors + [e for e in field_errors(exc) if e["field"] not in reported]


def validate_job(payload: dict) -> JobPosting:
    errors = []
    for field in JOB_REQUIRED_FIELDS:
        if _blank(payload.get(field)):
            errors.append({"field": field, "message": "Field required"})

    budget = payload.get("budget")
    if not isinstance(budget, dict):
        errors.append({"field": "budget", "message": "Budget range is required"})
    else:
        for bound in ("min", "max"):
            if budget.get(bound) is None:
                errors.append({"field": f"budget.{bound}", "message": "Field required"})
    missing = bool(errors)

    data = {k: v for k, v in payload.items() if k not in JOB_SERVER_FIELDS}
    job = None
    try:
        job = JobPosting.model_validate(data)
    except PydanticValidationError as exc:
        errors = _merge(errors, exc)

    if errors:
        raise ValidationError("Required fields are missing" if missing else "Invalid job posting", errors)
    return job


def validate_post(payload: dict) -> SocialPost:
    empty = _blank(payload.get("content"))
    errors = [{"field": "content", "message": "Content is required"}] if empty else []

    data = {k: v for k, v in payload.items() if k not in POST_SERVER_FIELDS}
    post = None
    try:
        post = SocialPost.model_validate(data)
    except PydanticValidationError as exc:
        errors = _merge(errors, exc)

    if empty:
        raise EmptyContent(errors=errors)
    if errors:
        raise ValidationError("Invalid post", errors)
    return post


def validate_comment(content: Optional[str]) -> str:
    if not isinstance(content, str) or not content.strip():
        raise EmptyContent("Comment content is required",
                           [{"field": "content", "message": "Content is required"}])
    content = content.strip()
    if len(content) > COMMENT_MAX_LENGTH:
        raise ValidationError("Invalid comment", [
            {"field": "content", "message": f"Comment must be at most {COMMENT_MAX_LENGTH} characters"}
        ])
    return content


def create_job(db: Database, payload: dict, poster_id: ObjectId) -> dict:
    job = validate_job(payload)
    doc = job.to_mongo()
    doc.update(postedBy=poster_id, applicants=[], status="active")
    doc.setdefault("deadline", None)
    created = create_document(db, JOB_COLLECTION, doc)
    logger.info("User %s created job %s", poster_id, created["_id"])
    return created


def create_post(db: Database, payload: dict, author_id: ObjectId) -> dict:
    post = validate_post(payload)
    doc = post.to_mongo()
    doc.update(author=author_id, likes=[], comments=[])
    created = create_document(db, POST_COLLECTION, doc)
    logger.info("User %s created post %s", author_id, created["_id"])
    return created


def apply_to_job(db: Database, job_id: ObjectId, applicant_id: ObjectId) -> dict:
    jobs = db[JOB_COLLECTION]
    now = utcnow()
    application = {"_id": ObjectId(), **Application(user=applicant_id, applied_at=now).to_mongo()}
    job = jobs.find_one_and_update(
        {"_id": job_id, "applicants.user": {"$ne": applicant_id}},
        {"$push": {"applicants": application}, "$set": {"updatedAt": now}},
        projection={"_id": True},
    )
    if job is None:
        if jobs.count_documents({"_id": job_id}, limit=1) == 0:
            raise NotFound("Job not found")
        raise AlreadyApplied()
    logger.info("User %s applied to job %s", applicant_id, job_id)
    return application


class LikeToggle(BaseModel):
    liked: bool
    likes_count: int


def toggle_like(db: Database, post_id: ObjectId, user_id: ObjectId) -> LikeToggle:
    posts = db[POST_COLLECTION]
    for _ in range(TOGGLE_ATTEMPTS):
        now = utcnow()
        post = posts.find_one_and_update(
            {"_id": post_id, "likes.user": user_id},
            {"$pull": {"likes": {"user": user_id}}, "$set": {"updatedAt": now}},
            projection={"likes": True},
            return_document=ReturnDocument.AFTER,
        )
        if post is not None:
            return LikeToggle(liked=False, likes_count=len(post.get("likes", [])))

        like = {"_id": ObjectId(), **Like(user=user_id, liked_at=now).to_mongo()}
        post = posts.find_one_and_update(
            {"_id": post_id, "likes.user": {"$ne": user_id}},
            {"$push": {"likes": like}, "$set": {"updatedAt": now}},
            projection={"likes": True},
            return_document=ReturnDocument.AFTER,
        )
        if post is not None:
            return LikeToggle(liked=True, likes_count=len(post.get("likes", [])))

        if posts.count_documents({"_id": post_id}, limit=1) == 0:
            raise NotFound("Post not found")
        # both guards lost to other toggles by the same user; look again

    logger.warning("Gave up toggling like on post %s for user %s", post_id, user_id)
    raise ConcurrentUpdate()


def add_comment(db: Database, post_id: ObjectId, user_id: ObjectId, content: Optional[str]) -> dict:
    content = validate_comment(content)
    now = utcnow()
    comment = {"_id": ObjectId(), **Comment(user=user_id, content=content, created_at=now).to_mongo()}
    post = db[POST_COLLECTION].find_one_and_update(
        {"_id": post_id},
        {"$push": {"comments": comment}, "$set": {"updatedAt": now}},
        projection={"_id": True},
    )
    if post is None:
        raise NotFound("Post not found")
    return populate(db, [dict(comment)], "user", ("name", "email"))[0]
