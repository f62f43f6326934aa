"""
Tests for the job endpoints
"""
from bson import ObjectId

from schemas import JOB_COLLECTION


class TestCreateJob:
    def test_create_job_applies_defaults(self, client, register, job_payload):
        # Given
        user, headers = register()

        # When
        response = client.post("/api/jobs", json=job_payload, headers=headers)

        # Then
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Job created successfully"
        job = body["job"]
        assert job["status"] == "active"
        assert job["location"] == "Remote"
        assert job["applicants"] == []
        assert job["tags"] == []
        assert job["requiredSkills"] == []
        assert job["budget"]["currency"] == "USD"
        assert job["postedBy"]["id"] == user["id"]
        assert job["postedBy"]["name"] == user["name"]
        assert "passwordHash" not in job["postedBy"]

    def test_client_cannot_set_server_fields(self, client, register, job_payload):
        _, headers = register()
        payload = {**job_payload, "status": "draft", "applicants": [{"user": "x"}], "postedBy": "someone"}

        response = client.post("/api/jobs", json=payload, headers=headers)

        assert response.status_code == 201
        job = response.json()["job"]
        assert job["status"] == "active"
        assert job["applicants"] == []

    def test_requires_token(self, client, job_payload, db):
        response = client.post("/api/jobs", json=job_payload)

        assert response.status_code == 401
        assert db[JOB_COLLECTION].count_documents({}) == 0

    def test_missing_fields_are_all_reported(self, client, register, db):
        _, headers = register()

        response = client.post("/api/jobs", json={"title": "  ", "budget": {"min": 10}}, headers=headers)

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Required fields are missing"
        fields = {e["field"] for e in body["errors"]}
        assert {"title", "description", "company", "jobType", "experienceLevel", "budget.max"} <= fields
        assert db[JOB_COLLECTION].count_documents({}) == 0

    def test_invalid_enum_and_budget_range(self, client, register, job_payload):
        _, headers = register()
        payload = {**job_payload, "jobType": "gig", "budget": {"min": 90, "max": 10}}

        response = client.post("/api/jobs", json=payload, headers=headers)

        assert response.status_code == 400
        fields = {e["field"] for e in response.json()["errors"]}
        assert "jobType" in fields
        assert "budget" in fields

    def test_body_must_be_an_object(self, client, register):
        _, headers = register()
        response = client.post("/api/jobs", json=["title"], headers=headers)
        assert response.status_code == 400


class TestListJobs:
    def test_second_page_of_contract_jobs(self, client, insert_jobs):
        # Given: 12 active contract jobs, Job 1 oldest
        insert_jobs(12, jobType="contract")
        insert_jobs(3, jobType="full-time")

        # When
        response = client.get("/api/jobs", params={"jobType": "contract", "page": 2, "limit": 5})

        # Then
        assert response.status_code == 200
        body = response.json()
        assert [job["title"] for job in body["jobs"]] == ["Job 7", "Job 6", "Job 5", "Job 4", "Job 3"]
        assert body["pagination"] == {"current": 2, "total": 3, "hasNext": True, "hasPrev": True}

    def test_last_page(self, client, insert_jobs):
        insert_jobs(25)

        body = client.get("/api/jobs", params={"page": 3}).json()

        assert len(body["jobs"]) == 5
        assert body["pagination"] == {"current": 3, "total": 3, "hasNext": False, "hasPrev": True}

    def test_huge_paging_parameters_are_clamped(self, client, insert_jobs):
        insert_jobs(3)

        response = client.get("/api/jobs", params={"page": "9" * 23, "limit": "9" * 23})

        assert response.status_code == 200
        body = response.json()
        assert body["jobs"] == []
        assert body["pagination"]["current"] <= 2 ** 63 - 1
        assert body["pagination"]["total"] == 1

    def test_bad_paging_parameters_fall_back(self, client, insert_jobs):
        insert_jobs(3)

        body = client.get("/api/jobs", params={"page": "-2", "limit": "0"}).json()

        assert len(body["jobs"]) == 3
        assert body["pagination"]["current"] == 1
        assert body["pagination"]["hasPrev"] is False

    def test_filters_combine(self, client, insert_jobs):
        insert_jobs(1, title="Remote Python", requiredSkills=["python"], location="Remote")
        insert_jobs(1, title="Berlin Python", requiredSkills=["python"], location="Berlin")
        insert_jobs(1, title="Berlin Go", requiredSkills=["go"], location="Berlin")
        insert_jobs(1, title="Closed Berlin Python", requiredSkills=["python"], location="Berlin",
                    status="closed")

        body = client.get("/api/jobs", params={"skills": "python, rust", "location": "berlin"}).json()

        assert [job["title"] for job in body["jobs"]] == ["Berlin Python"]

    def test_listing_populates_poster_without_password(self, client, register, job_payload):
        user, headers = register()
        client.post("/api/jobs", json=job_payload, headers=headers)

        job = client.get("/api/jobs").json()["jobs"][0]

        assert job["postedBy"] == {"id": user["id"], "name": user["name"], "email": user["email"]}


class TestGetJob:
    def test_get_job(self, client, register, job_payload):
        user, headers = register()
        job_id = client.post("/api/jobs", json=job_payload, headers=headers).json()["job"]["id"]

        response = client.get(f"/api/jobs/{job_id}")

        assert response.status_code == 200
        job = response.json()["job"]
        assert job["id"] == job_id
        assert set(job["postedBy"]) == {"id", "name", "email", "bio", "skills"}

    def test_unknown_and_malformed_ids(self, client):
        assert client.get(f"/api/jobs/{ObjectId()}").status_code == 404
        assert client.get("/api/jobs/not-an-id").status_code == 404


class TestApply:
    def test_apply_once(self, client, register, job_payload, db):
        # Given
        _, poster_headers = register()
        applicant, headers = register()
        job_id = client.post("/api/jobs", json=job_payload, headers=poster_headers).json()["job"]["id"]

        # When
        first = client.post(f"/api/jobs/{job_id}/apply", headers=headers)
        second = client.post(f"/api/jobs/{job_id}/apply", headers=headers)

        # Then
        assert first.status_code == 200
        assert first.json() == {"message": "Applied successfully"}
        assert second.status_code == 400
        assert second.json()["message"] == "Already applied to this job"
        applicants = db[JOB_COLLECTION].find_one({"_id": ObjectId(job_id)})["applicants"]
        assert len(applicants) == 1
        assert str(applicants[0]["user"]) == applicant["id"]
        assert applicants[0]["status"] == "pending"

    def test_apply_to_missing_job(self, client, register):
        _, headers = register()
        assert client.post(f"/api/jobs/{ObjectId()}/apply", headers=headers).status_code == 404

    def test_apply_requires_token(self, client):
        assert client.post(f"/api/jobs/{ObjectId()}/apply").status_code == 401

    def test_applicants_visible_on_detail_and_posted(self, client, register, job_payload):
        _, poster_headers = register()
        applicant, headers = register(name="Applicant")
        job_id = client.post("/api/jobs", json=job_payload, headers=poster_headers).json()["job"]["id"]
        client.post(f"/api/jobs/{job_id}/apply", headers=headers)

        detail = client.get(f"/api/jobs/{job_id}").json()["job"]
        posted = client.get("/api/jobs/user/posted", headers=poster_headers).json()["jobs"]

        assert detail["applicants"][0]["user"]["name"] == "Applicant"
        assert set(detail["applicants"][0]["user"]) == {"id", "name", "email", "skills"}
        assert [job["id"] for job in posted] == [job_id]
        assert posted[0]["applicants"][0]["user"]["id"] == applicant["id"]

    def test_posted_jobs_only_lists_own(self, client, register, job_payload):
        _, mine = register()
        _, theirs = register()
        client.post("/api/jobs", json=job_payload, headers=theirs)

        assert client.get("/api/jobs/user/posted", headers=mine).json() == {"jobs": []}
        assert client.get("/api/jobs/user/posted").status_code == 401
