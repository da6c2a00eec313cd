"""Merge job lists from several providers."""
import logging
from collections import defaultdict

from .models import JobRecord

logger = logging.getLogger(__name__)


def aggregate(*job_lists: list[JobRecord]) -> list[JobRecord]:
    """Concatenate provider results, dropping duplicates.

    Jobs are duplicates when they share a redirect URL, or a source and id.
    The first occurrence wins.
    """
    seen_urls: set[str] = set()
    seen_ids: set[tuple[str, str]] = set()
    merged: list[JobRecord] = []
    for jobs in job_lists:
        for job in jobs:
            key = (job.source, job.id)
            if job.redirect_url in seen_urls or (job.id and key in seen_ids):
                continue
            seen_urls.add(job.redirect_url)
            if job.id:
                seen_ids.add(key)
            merged.append(job)

    total = sum(len(jobs) for jobs in job_lists)
    if total != len(merged):
        logger.info(f"Dropped {total - len(merged)} duplicate jobs")
    return merged


def group_by_country(jobs: list[JobRecord]) -> dict[str, list[JobRecord]]:
    """Group jobs by country, preserving order within each group."""
    groups: dict[str, list[JobRecord]] = defaultdict(list)
    for job in jobs:
        groups[job.country or "Unknown"].append(job)
    return dict(groups)
