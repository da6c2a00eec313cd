"""Resume analysis and job search endpoints."""

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from resumeflow.api.deps import get_adzuna, get_jsearch
from resumeflow.api.schemas import JobSearchResponse, UploadResumeResponse
from resumeflow.scoring import analyze_resume, extract_text, get_category, search_keywords
from resumeflow.scraper import AdzunaClient, JSearchClient, aggregate, group_by_country

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/upload-resume", response_model=UploadResumeResponse)
def upload_resume(
    resume: UploadFile = File(...),
    jobCategory: str = Form("software"),
    includeRemote: bool = Form(False),
    jsearch: JSearchClient = Depends(get_jsearch),
):
    """Score a PDF resume and find matching jobs, grouped by country."""
    get_category(jobCategory)

    content = resume.file.read()
    if not content:
        raise HTTPException(status_code=400, detail="No file uploaded")

    text = extract_text(content)
    analysis = analyze_resume(text, jobCategory)
    jobs = jsearch.search(search_keywords(analysis), jobCategory, includeRemote)
    logger.info(f"Found {len(jobs)} jobs globally for category {jobCategory}")

    by_country = group_by_country(jobs)
    return {
        "category": jobCategory,
        "atsScore": analysis.score,
        "suggestions": analysis.suggestions,
        "keywords": analysis.matching_keywords,
        "missingKeywords": analysis.missing_keywords,
        "totalJobs": len(jobs),
        "jobsByCountry": {
            country: [job.to_dict() for job in group] for country, group in by_country.items()
        },
        "jobs": [job.to_dict() for job in jobs],
    }


@router.get("/jobs/search", response_model=JobSearchResponse)
def search_jobs(
    category: str = "software",
    remote: bool = False,
    jsearch: JSearchClient = Depends(get_jsearch),
    adzuna: AdzunaClient = Depends(get_adzuna),
):
    """Search both providers and merge the results."""
    job_category = get_category(category)
    jobs = aggregate(
        jsearch.search(job_category.keywords, category, remote),
        adzuna.search(category, remote, category_tag=job_category.provider_category),
    )
    return {"category": category, "jobCount": len(jobs), "jobs": [j.to_dict() for j in jobs]}
