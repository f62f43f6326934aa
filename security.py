"""
Credentials and sessions

CredentialStore owns the user collection: password hashing, login checks and
profile changes. SessionIssuer signs and checks the bearer tokens that bind a
request to a user. Both are built once in create_app and reached through the
dependencies at the bottom of this module.
"""

import logging
from datetime import timedelta
from typing import Optional

import bcrypt
import jwt
from bson import ObjectId
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError as PydanticValidationError
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import PRIVATE_PROJECTION, create_document, parse_object_id, utcnow
from errors import (
    Conflict,
    DuplicateEmail,
    InvalidCredentials,
    NotFound,
    Unauthenticated,
    ValidationError,
    field_errors,
)
from schemas import USER_COLLECTION, ProfileUpdate, User

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72
WALLET_TAKEN = "Wallet address already connected to another account"

# Fields a wallet-only account starts with
WALLET_USER_DEFAULTS = {
    "name": "",
    "bio": "",
    "linkedinUrl": "",
    "skills": [],
    "profileImage": "",
    "location": "",
    "experience": "entry",
}


def normalize_email(email: Optional[str]) -> str:
    return email.strip().lower() if isinstance(email, str) else ""


class CredentialStore:
    def __init__(self, db: Database, rounds: int = 12):
        self.users = db[USER_COLLECTION]
        self.db = db
        self.rounds = rounds

    def hash_password(self, raw_password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(raw_password.encode("utf-8"), salt).decode("utf-8")

    @staticmethod
    def check_password(raw_password: str, password_hash: Optional[str]) -> bool:
        if not password_hash or not isinstance(raw_password, str):
            return False
        encoded = raw_password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            return False
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))

    def register(self, name: str, email: str, raw_password: str) -> dict:
        errors = []
        if not (name or "").strip():
            errors.append({"field": "name", "message": "Name is required"})
        if "@" not in normalize_email(email):
            errors.append({"field": "email", "message": "A valid email is required"})
        if not isinstance(raw_password, str) or len(raw_password) < MIN_PASSWORD_LENGTH:
            errors.append({"field": "password",
                           "message": f"Password must be at least {MIN_PASSWORD_LENGTH} characters"})
        elif len(raw_password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            errors.append({"field": "password",
                           "message": f"Password must be at most {MAX_PASSWORD_BYTES} bytes"})
        if errors:
            raise ValidationError("Registration details are invalid", errors)

        email = normalize_email(email)
        if self.users.count_documents({"email": email}, limit=1):
            raise DuplicateEmail()

        user = User(name=name, email=email, password_hash=self.hash_password(raw_password))
        try:
            created = create_document(self.db, USER_COLLECTION, user)
        except DuplicateKeyError:
            # lost a race against another registration for the same email
            raise DuplicateEmail()
        logger.info("Registered user %s", created["_id"])
        created.pop("passwordHash", None)
        return created

    def verify(self, email: str, raw_password: str) -> dict:
        user = self.users.find_one({"email": normalize_email(email)})
        if user is None or not self.check_password(raw_password, user.get("passwordHash")):
            logger.warning("Failed login attempt for %s", normalize_email(email))
            raise InvalidCredentials()
        user.pop("passwordHash")
        return user

    def get_user(self, user_id) -> Optional[dict]:
        if not isinstance(user_id, ObjectId):
            user_id = parse_object_id(user_id, "User not found")
        return self.users.find_one({"_id": user_id}, PRIVATE_PROJECTION)

    def _ensure_wallet_free(self, wallet_address: str, owner: dict):
        """Raise Conflict when another account already holds the wallet."""
        taken = self.users.count_documents({"walletAddress": wallet_address, **owner}, limit=1)
        if taken:
            raise Conflict(WALLET_TAKEN)

    def update_profile(self, user_id: ObjectId, payload: dict) -> dict:
        try:
            update = ProfileUpdate.model_validate(payload)
        except PydanticValidationError as exc:
            raise ValidationError("Profile details are invalid", field_errors(exc))

        fields = update.model_dump(by_alias=True, exclude_unset=True)
        to_set = {"updatedAt": utcnow()}
        to_unset = {}
        for key, value in fields.items():
            if key == "walletAddress":
                if value:
                    to_set[key] = value
                else:
                    to_unset[key] = ""
            elif key in ("name", "experience", "skills"):
                if value is not None and value != "":
                    to_set[key] = value
            elif value is not None:
                to_set[key] = value

        if to_set.get("walletAddress"):
            self._ensure_wallet_free(to_set["walletAddress"], {"_id": {"$ne": user_id}})

        changes = {"$set": to_set}
        if to_unset:
            changes["$unset"] = to_unset
        try:
            user = self.users.find_one_and_update(
                {"_id": user_id}, changes,
                projection=PRIVATE_PROJECTION,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            raise Conflict(WALLET_TAKEN)
        if user is None:
            raise NotFound("User not found")
        return user

    def connect_wallet(self, email: str, wallet_address: str) -> dict:
        email = normalize_email(email)
        wallet_address = wallet_address.strip() if isinstance(wallet_address, str) else ""
        errors = []
        if not email:
            errors.append({"field": "email", "message": "Email is required"})
        if not wallet_address:
            errors.append({"field": "walletAddress", "message": "Wallet address is required"})
        if errors:
            raise ValidationError("Email and wallet address are required", errors)

        self._ensure_wallet_free(wallet_address, {"email": {"$ne": email}})

        now = utcnow()
        try:
            return self.users.find_one_and_update(
                {"email": email},
                {
                    "$set": {"walletAddress": wallet_address, "updatedAt": now},
                    "$setOnInsert": {**WALLET_USER_DEFAULTS, "createdAt": now},
                },
                projection=PRIVATE_PROJECTION,
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            raise Conflict(WALLET_TAKEN)


class SessionIssuer:
    algorithm = "HS256"

    def __init__(self, secret: str, expires_in: timedelta = timedelta(days=7)):
        self.secret = secret
        self.expires_in = expires_in

    def issue(self, user_id) -> str:
        now = utcnow()
        payload = {"sub": str(user_id), "iat": now, "exp": now + self.expires_in}
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: Optional[str]) -> str:
        if not token:
            raise Unauthenticated("No token, authorization denied")
        try:
            payload = jwt.decode(
                token, self.secret, algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise Unauthenticated("Token has expired")
        except jwt.InvalidTokenError:
            raise Unauthenticated("Token is not valid")
        return payload["sub"]


bearer_scheme = HTTPBearer(auto_error=False)


def get_credentials(request: Request) -> CredentialStore:
    return request.app.state.credentials


def get_sessions(request: Request) -> SessionIssuer:
    return request.app.state.sessions


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    sessions: SessionIssuer = Depends(get_sessions),
    store: CredentialStore = Depends(get_credentials),
) -> dict:
    """Resolve the bearer token to the user it was issued for."""
    user_id = sessions.verify(credentials.credentials if credentials else None)
    try:
        user = store.get_user(user_id)
    except NotFound:
        user = None
    if user is None:
        raise Unauthenticated("Token is not valid")
    return user
