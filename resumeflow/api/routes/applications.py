"""Mass apply and task status endpoints."""

import binascii

from fastapi import APIRouter, Depends, HTTPException

from resumeflow.api.deps import get_store
from resumeflow.api.schemas import (
    BatchResponse,
    MassApplyRequest,
    MassApplyResponse,
    TaskResponse,
)
from resumeflow.core.errors import ValidationError
from resumeflow.intake import mass_apply
from resumeflow.queue.store import TaskStore
from resumeflow.queue.task import ResumeAttachment, TaskStatus

router = APIRouter()


@router.post("/mass-apply", response_model=MassApplyResponse)
def mass_apply_endpoint(request: MassApplyRequest, store: TaskStore = Depends(get_store)):
    """Queue one application per job. Returns before any browser work runs."""
    resume = None
    if request.resume is not None:
        try:
            resume = ResumeAttachment.from_base64(
                request.resume.filename,
                request.resume.content_base64,
                request.resume.mime_type,
            )
        except binascii.Error as e:
            raise ValidationError(f"Resume is not valid base64: {e}") from e

    jobs = [job.model_dump(exclude_none=True) for job in request.jobs]
    return mass_apply(store, jobs, resume, request.applicant)


@router.get("/tasks/{task_id}", response_model=TaskResponse)
def get_task(task_id: str, store: TaskStore = Depends(get_store)):
    """Current status and result of one task."""
    task = store.get(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return task.summary()


@router.get("/batches/{batch_id}", response_model=BatchResponse)
def get_batch(batch_id: str, store: TaskStore = Depends(get_store)):
    """All tasks from one mass-apply request, in submission order."""
    tasks = store.list_batch(batch_id)
    if not tasks:
        raise HTTPException(status_code=404, detail="Batch not found")

    counts = {status.value: 0 for status in TaskStatus}
    for task in tasks:
        counts[task.status.value] += 1
    return {"batchId": batch_id, "counts": counts, "tasks": [t.summary() for t in tasks]}


@router.get("/queue/stats")
def queue_stats(store: TaskStore = Depends(get_store)):
    """Task counts by status."""
    return store.stats()
