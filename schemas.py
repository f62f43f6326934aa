"""
Database Schemas for the Job Portal

Each Pydantic model represents a MongoDB collection. The collection name is the
lowercased class name. Example: class JobPosting -> "jobposting" collection.
Documents are stored with camelCase keys, the same keys the API returns.
"""

from datetime import datetime
from typing import List, Literal, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

ExperienceLevel = Literal["entry", "junior", "mid", "senior", "lead", "executive"]
JobType = Literal["full-time", "part-time", "contract", "freelance", "internship"]
JobStatus = Literal["active", "closed", "draft"]
ApplicationStatus = Literal["pending", "accepted", "rejected"]
PostType = Literal["update", "achievement", "article", "question", "celebration"]

USER_COLLECTION = "user"
JOB_COLLECTION = "jobposting"
POST_COLLECTION = "socialpost"


class Document(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        arbitrary_types_allowed=True,
    )

    def to_mongo(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


def _drop_blank(values: List[str]) -> List[str]:
    return [v for v in values if v]


# People using the portal; passwordHash never leaves the server
class User(Document):
    name: str = Field("", description="Full name")
    email: str = Field(..., description="Login email, stored lowercased")
    password_hash: Optional[str] = Field(None, description="bcrypt hash")
    wallet_address: Optional[str] = Field(None, description="Connected wallet, absent when unset")
    bio: str = Field("", max_length=500)
    linkedin_url: str = ""
    skills: List[str] = Field(default_factory=list)
    profile_image: str = Field("", description="Profile image URL")
    location: str = ""
    experience: ExperienceLevel = "entry"

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.lower()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v

    @field_validator("skills")
    @classmethod
    def clean_skills(cls, v):
        return _drop_blank(v)


class ProfileUpdate(Document):
    """Fields a user may change on their own profile; unset fields are left alone."""

    name: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=500)
    linkedin_url: Optional[str] = None
    skills: Optional[List[str]] = None
    wallet_address: Optional[str] = None
    location: Optional[str] = None
    experience: Optional[ExperienceLevel] = None
    profile_image: Optional[str] = None

    @field_validator("experience", mode="before")
    @classmethod
    def blank_experience(cls, v):
        return v or None

    @field_validator("skills")
    @classmethod
    def clean_skills(cls, v):
        return _drop_blank(v) if v is not None else v


class Budget(Document):
    min: float = Field(..., ge=0)
    max: float = Field(..., ge=0)
    currency: str = "USD"

    @model_validator(mode="after")
    def check_range(self):
        if self.max < self.min:
            raise ValueError("budget.max must be greater than or equal to budget.min")
        return self


class Application(Document):
    user: ObjectId
    applied_at: datetime
    status: ApplicationStatus = "pending"


class JobPosting(Document):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    required_skills: List[str] = Field(default_factory=list)
    budget: Budget
    job_type: JobType
    location: str = "Remote"
    company: str = Field(..., min_length=1)
    experience_level: ExperienceLevel
    tags: List[str] = Field(default_factory=list)
    deadline: Optional[datetime] = None

    @field_validator("location", mode="before")
    @classmethod
    def default_location(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return "Remote"
        return v

    @field_validator("required_skills", "tags", mode="before")
    @classmethod
    def default_list(cls, v):
        return v or []

    @field_validator("required_skills", "tags")
    @classmethod
    def clean_list(cls, v):
        return _drop_blank(v)


class Like(Document):
    user: ObjectId
    liked_at: datetime


class Comment(Document):
    user: ObjectId
    content: str = Field(..., min_length=1, max_length=500)
    created_at: datetime


class SocialPost(Document):
    content: str = Field(..., min_length=1, max_length=1000)
    post_type: PostType = "update"
    tags: List[str] = Field(default_factory=list)
    image: str = ""

    @field_validator("post_type", mode="before")
    @classmethod
    def default_post_type(cls, v):
        return v or "update"

    @field_validator("tags", mode="before")
    @classmethod
    def default_tags(cls, v):
        return v or []

    @field_validator("image", mode="before")
    @classmethod
    def default_image(cls, v):
        return v or ""

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v):
        return _drop_blank(v)
