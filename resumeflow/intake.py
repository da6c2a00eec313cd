"""Mass-apply intake: validate a request and enqueue one task per job."""
import logging
import uuid
from collections.abc import Mapping
from typing import Any, Optional

from .core.errors import ValidationError
from .forms.selectors import FIELD_KINDS, FieldKind
from .queue.store import TaskStore
from .queue.task import ApplicationTask, ResumeAttachment

logger = logging.getLogger(__name__)

# Applicant values a job entry may carry itself, overriding the shared ones
TEXT_FIELDS: list[str] = [name for name, kind in FIELD_KINDS.items() if kind == FieldKind.TEXT]


def _job_url(job: Any, index: int) -> str:
    if not isinstance(job, Mapping):
        raise ValidationError(f"Job {index} is not an object")
    url = job.get("redirect_url")
    if not isinstance(url, str) or not url.strip():
        raise ValidationError(f"Job {index} has no redirect_url")
    return url.strip()


def build_tasks(
    jobs: list[Mapping[str, Any]],
    resume: ResumeAttachment,
    applicant_fields: Optional[Mapping[str, str]] = None,
) -> list[ApplicationTask]:
    """One ApplicationTask per job, sharing the resume and a batch id."""
    batch_id = str(uuid.uuid4())
    is_batch = len(jobs) > 1
    tasks = []
    for index, job in enumerate(jobs):
        url = _job_url(job, index)
        fields = {k: str(v) for k, v in (applicant_fields or {}).items() if v}
        for name in TEXT_FIELDS:
            if job.get(name):
                fields[name] = str(job[name])
        tasks.append(
            ApplicationTask(
                job_redirect_url=url,
                applicant_fields=fields,
                resume_attachment=resume,
                is_batch_member=is_batch,
                batch_id=batch_id,
                job_title=str(job.get("title") or ""),
                company=str(job.get("company") or ""),
            )
        )
    return tasks


def mass_apply(
    store: TaskStore,
    jobs: Any,
    resume: Optional[ResumeAttachment],
    applicant_fields: Optional[Mapping[str, str]] = None,
) -> dict[str, Any]:
    """Validate and enqueue a mass application. Does not wait for processing.

    Raises:
        ValidationError: If jobs is empty or malformed, or the resume is missing.
            Nothing is enqueued in that case.
    """
    if not isinstance(jobs, list) or not jobs:
        raise ValidationError("No jobs provided")
    if resume is None or not resume.content:
        raise ValidationError("No resume provided")

    tasks = build_tasks(jobs, resume, applicant_fields)
    task_ids = store.enqueue_batch(tasks)

    logger.info(f"Queued {len(task_ids)} applications (batch {tasks[0].batch_id})")
    return {
        "status": "queued",
        "taskIds": task_ids,
        "batchId": tasks[0].batch_id,
        "message": f"Queued {len(task_ids)} applications",
    }
