from typing import Optional

from fastapi import APIRouter, Body, Depends
from pymongo.database import Database

from database import find_page, get_db, get_documents, parse_object_id, populate, to_public
from errors import NotFound
from listing import PageRequest, build_job_query
from mutations import apply_to_job, create_job
from schemas import JOB_COLLECTION
from security import get_current_user

router = APIRouter(tags=["jobs"])

POSTER_SUMMARY = ("name", "email")
POSTER_DETAIL = ("name", "email", "bio", "skills")
APPLICANT_SUMMARY = ("name", "email", "skills")


@router.get("")
def list_jobs(q: Optional[str] = None, skills: Optional[str] = None, location: Optional[str] = None,
              jobType: Optional[str] = None, experienceLevel: Optional[str] = None,
              page: Optional[str] = None, limit: Optional[str] = None,
              db: Database = Depends(get_db)):
    query = build_job_query(q=q, skills=skills, location=location,
                            job_type=jobType, experience_level=experienceLevel)
    paging = PageRequest.parse(page, limit)
    jobs, total = find_page(db, JOB_COLLECTION, query, paging.skip, paging.limit)
    populate(db, jobs, "postedBy", POSTER_SUMMARY)
    return {"jobs": to_public(jobs), "pagination": paging.describe(len(jobs), total)}


@router.get("/user/posted")
def list_posted_jobs(user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    jobs = get_documents(db, JOB_COLLECTION, {"postedBy": user["_id"]})
    populate(db, jobs, "applicants.user", APPLICANT_SUMMARY)
    return {"jobs": to_public(jobs)}


@router.get("/{job_id}")
def get_job(job_id: str, db: Database = Depends(get_db)):
    job = db[JOB_COLLECTION].find_one({"_id": parse_object_id(job_id, "Job not found")})
    if job is None:
        raise NotFound("Job not found")
    populate(db, [job], "postedBy", POSTER_DETAIL)
    populate(db, [job], "applicants.user", APPLICANT_SUMMARY)
    return {"job": to_public(job)}


@router.post("", status_code=201)
def post_job(payload: dict = Body(...), user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    job = create_job(db, payload, user["_id"])
    populate(db, [job], "postedBy", POSTER_SUMMARY)
    return {"message": "Job created successfully", "job": to_public(job)}


@router.post("/{job_id}/apply")
def apply(job_id: str, user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    apply_to_job(db, parse_object_id(job_id, "Job not found"), user["_id"])
    return {"message": "Applied successfully"}
