# tests/conftest.py
"""
pytest fixtures: an app wired to an in-memory MongoDB and helpers for users.
"""
from datetime import datetime, timedelta, timezone

import mongomock
import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app
from schemas import JOB_COLLECTION, POST_COLLECTION


@pytest.fixture
def settings():
    return Settings(
        database_name="job_portal_test",
        jwt_secret="test-secret",
        bcrypt_rounds=4,
    )


@pytest.fixture
def db():
    return mongomock.MongoClient()["job_portal_test"]


@pytest.fixture
def app(settings, db):
    return create_app(settings, db)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def register(client):
    """Register a user through the API and return (user, auth headers)."""
    counter = {"n": 0}

    def _register(name=None, email=None, password="secret123"):
        counter["n"] += 1
        n = counter["n"]
        response = client.post("/api/auth/register", json={
            "name": name or f"User {n}",
            "email": email or f"user{n}@example.com",
            "password": password,
        })
        assert response.status_code == 201, response.text
        body = response.json()
        return body["user"], {"Authorization": f"Bearer {body['token']}"}

    return _register


@pytest.fixture
def job_payload():
    return {
        "title": "Engineer",
        "description": "Build things",
        "company": "Acme",
        "jobType": "full-time",
        "experienceLevel": "mid",
        "budget": {"min": 50000, "max": 80000},
    }


@pytest.fixture
def insert_jobs(db):
    """Insert job documents directly, oldest first, one minute apart."""

    def _insert(count, **fields):
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        docs = []
        for i in range(count):
            doc = {
                "title": f"Job {i + 1}",
                "description": "desc",
                "company": "Acme",
                "requiredSkills": [],
                "budget": {"min": 1, "max": 2, "currency": "USD"},
                "jobType": "full-time",
                "experienceLevel": "mid",
                "location": "Remote",
                "tags": [],
                "status": "active",
                "applicants": [],
                "createdAt": start + timedelta(minutes=i),
            }
            doc.update(fields)
            docs.append(doc)
        db[JOB_COLLECTION].insert_many(docs)
        return docs

    return _insert


@pytest.fixture
def insert_posts(db):
    def _insert(count, author, **fields):
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        docs = [
            {
                "content": f"Post {i + 1}",
                "author": author,
                "postType": "update",
                "tags": [],
                "image": "",
                "likes": [],
                "comments": [],
                "createdAt": start + timedelta(minutes=i),
                **fields,
            }
            for i in range(count)
        ]
        db[POST_COLLECTION].insert_many(docs)
        return docs

    return _insert
