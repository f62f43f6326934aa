from fastapi import APIRouter, Depends
from pydantic import BaseModel

from database import to_public
from security import CredentialStore, SessionIssuer, get_credentials, get_current_user, get_sessions

router = APIRouter(tags=["auth"])


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


@router.post("/register", status_code=201)
def register(req: RegisterRequest,
             store: CredentialStore = Depends(get_credentials),
             sessions: SessionIssuer = Depends(get_sessions)):
    user = store.register(req.name, req.email, req.password)
    return {
        "message": "User registered successfully",
        "token": sessions.issue(user["_id"]),
        "user": to_public(user),
    }


@router.post("/login")
def login(req: LoginRequest,
          store: CredentialStore = Depends(get_credentials),
          sessions: SessionIssuer = Depends(get_sessions)):
    user = store.verify(req.email, req.password)
    return {
        "message": "Login successful",
        "token": sessions.issue(user["_id"]),
        "user": to_public(user),
    }


@router.get("/me")
def me(user: dict = Depends(get_current_user)):
    return {"user": to_public(user)}
