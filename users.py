from typing import Optional

from fastapi import APIRouter, Body, Depends
from pymongo.database import Database

from database import PRIVATE_PROJECTION, get_db, get_documents, to_public
from errors import NotFound
from listing import USER_SEARCH_LIMIT, build_user_query
from schemas import USER_COLLECTION
from security import CredentialStore, get_credentials, get_current_user

router = APIRouter(tags=["users"])


@router.get("/profile/{user_id}")
def get_profile(user_id: str, store: CredentialStore = Depends(get_credentials)):
    user = store.get_user(user_id)
    if user is None:
        raise NotFound("User not found")
    return {"user": to_public(user)}


@router.put("/profile")
def update_profile(payload: dict = Body(...), user: dict = Depends(get_current_user),
                   store: CredentialStore = Depends(get_credentials)):
    updated = store.update_profile(user["_id"], payload)
    return {"message": "Profile updated successfully", "user": to_public(updated)}


@router.post("/connect-wallet")
def connect_wallet(payload: dict = Body(...), store: CredentialStore = Depends(get_credentials)):
    user = store.connect_wallet(payload.get("email"), payload.get("walletAddress"))
    return {"message": "Wallet connected successfully", "user": to_public(user)}


@router.get("/search")
def search_users(q: Optional[str] = None, skills: Optional[str] = None, db: Database = Depends(get_db)):
    users = get_documents(db, USER_COLLECTION, build_user_query(q=q, skills=skills),
                          limit=USER_SEARCH_LIMIT, projection=PRIVATE_PROJECTION)
    return {"users": to_public(users)}
