"""API request/response schemas."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# Mass apply schemas
class JobDescriptor(BaseModel):
    model_config = ConfigDict(extra="allow")

    redirect_url: str = Field(description="Application form URL")
    id: Optional[str] = None
    title: Optional[str] = None
    company: Optional[str] = None


class ResumePayload(BaseModel):
    filename: str = "resume.pdf"
    content_base64: str = Field(description="Base64-encoded resume file")
    mime_type: str = "application/pdf"


class MassApplyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    jobs: list[JobDescriptor]
    resume: Optional[ResumePayload] = Field(default=None, alias="resumeData")
    applicant: dict[str, str] = Field(default_factory=dict)


class MassApplyResponse(BaseModel):
    status: str
    taskIds: list[Optional[str]]
    batchId: str
    message: str


# Task schemas
class TaskResponse(BaseModel):
    id: str
    status: str
    jobRedirectUrl: str
    jobTitle: str
    company: str
    isBatchMember: bool
    batchId: Optional[str]
    attempts: int
    hasResume: bool
    result: Optional[dict[str, Any]]
    createdAt: Optional[str]
    startedAt: Optional[str]
    finishedAt: Optional[str]


class BatchResponse(BaseModel):
    batchId: str
    counts: dict[str, int]
    tasks: list[TaskResponse]


# Resume analysis schemas
class UploadResumeResponse(BaseModel):
    category: str
    atsScore: int
    suggestions: str
    keywords: list[str]
    missingKeywords: list[str]
    totalJobs: int
    jobsByCountry: dict[str, list[dict[str, Any]]]
    jobs: list[dict[str, Any]]


class JobSearchResponse(BaseModel):
    category: str
    jobCount: int
    jobs: list[dict[str, Any]]
