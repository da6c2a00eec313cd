"""HTTP clients for external job-search providers."""
import logging
from typing import Any, Optional

import httpx

from ..scoring.analyzer import get_category
from .models import JobRecord

logger = logging.getLogger(__name__)

JSEARCH_URL: str = "https://jsearch.p.rapidapi.com/search"
ADZUNA_URL: str = "https://api.adzuna.com/v1/api/jobs"
DEFAULT_TIMEOUT: float = 30.0


def _text(value: Any, default: str = "") -> str:
    """Safely convert value to string, handling None."""
    if value is None:
        return default
    return str(value)


class JSearchClient:
    """Client for the JSearch (RapidAPI) job search endpoint."""

    SOURCE = "jsearch"

    def __init__(
        self,
        api_key: str,
        host: str = "jsearch.p.rapidapi.com",
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._api_key = api_key
        self._host = host
        self._timeout = timeout
        self._client = client

    def _build_query(self, keywords: list[str], category: str, include_remote: bool) -> str:
        if category == "officeAdmin":
            term = "administrative OR office"
        else:
            term = keywords[0] if keywords else get_category(category).keywords[0]
        return f"{term} remote" if include_remote else term

    def search(
        self, keywords: list[str], category: str, include_remote: bool = True
    ) -> list[JobRecord]:
        """Search for jobs. Provider errors are logged and yield no jobs."""
        params = {
            "query": self._build_query(keywords, category, include_remote),
            "page": "1",
            "num_pages": "1",
        }
        headers = {"X-RapidAPI-Key": self._api_key, "X-RapidAPI-Host": self._host}
        logger.info(f"JSearch query: '{params['query']}'")

        try:
            client = self._client or httpx.Client(timeout=self._timeout)
            try:
                response = client.get(JSEARCH_URL, params=params, headers=headers)
            finally:
                if self._client is None:
                    client.close()
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"JSearch failed with status {e.response.status_code}: {e.response.text}"
            )
            return []
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"JSearch request failed: {e}")
            return []

        rows = payload.get("data") if isinstance(payload, dict) else None
        if not rows:
            logger.info("No results found")
            return []

        jobs = [self._normalize(row, category) for row in rows]
        jobs = [job for job in jobs if job.redirect_url]
        logger.info(f"JSearch returned {len(jobs)} jobs")
        return jobs

    def _normalize(self, row: dict[str, Any], category: str) -> JobRecord:
        country = _text(row.get("job_country"))
        city = row.get("job_city")
        return JobRecord(
            id=_text(row.get("job_id")),
            title=_text(row.get("job_title")),
            company=_text(row.get("employer_name")) or "Unknown Company",
            location=f"{city}, {country}" if city else country,
            description=_text(row.get("job_description")),
            redirect_url=_text(row.get("job_apply_link")),
            salary_min=row.get("job_min_salary") or None,
            salary_max=row.get("job_max_salary") or None,
            is_remote=bool(row.get("job_is_remote")),
            country=country,
            category=category,
            source=self.SOURCE,
        )


class AdzunaClient:
    """Client for the Adzuna job search API."""

    SOURCE = "adzuna"

    def __init__(
        self,
        app_id: str,
        api_key: str,
        country: str = "us",
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._app_id = app_id
        self._api_key = api_key
        self._country = country
        self._timeout = timeout
        self._client = client

    def search(
        self, category: str, remote: bool = False, category_tag: Optional[str] = None
    ) -> list[JobRecord]:
        """Search one results page. Remote filtering is by title/description text."""
        url = f"{ADZUNA_URL}/{self._country}/search/1"
        params = {
            "app_id": self._app_id,
            "app_key": self._api_key,
            "what": category,
            "content-type": "application/json",
        }
        if category_tag:
            params["category"] = category_tag
        logger.info(f"Adzuna query: '{category}' in {self._country}")

        try:
            client = self._client or httpx.Client(timeout=self._timeout)
            try:
                response = client.get(url, params=params)
            finally:
                if self._client is None:
                    client.close()
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Adzuna failed with status {e.response.status_code}: {e.response.text}"
            )
            return []
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Adzuna request failed: {e}")
            return []

        rows = payload.get("results", []) if isinstance(payload, dict) else []
        jobs = [self._normalize(row, category) for row in rows]
        if remote:
            jobs = [job for job in jobs if job.is_remote]
        jobs = [job for job in jobs if job.redirect_url]
        logger.info(f"Adzuna returned {len(jobs)} jobs")
        return jobs

    def _normalize(self, row: dict[str, Any], category: str) -> JobRecord:
        title = _text(row.get("title"))
        description = _text(row.get("description"))
        location = row.get("location") or {}
        area = location.get("area") or []
        company = row.get("company") or {}
        return JobRecord(
            id=_text(row.get("id")),
            title=title,
            company=_text(company.get("display_name")) or "Unknown Company",
            location=_text(location.get("display_name")),
            description=description,
            redirect_url=_text(row.get("redirect_url")),
            salary_min=row.get("salary_min"),
            salary_max=row.get("salary_max"),
            is_remote="remote" in title.lower() or "remote" in description.lower(),
            country=_text(area[0]) if area else self._country.upper(),
            category=category,
            source=self.SOURCE,
        )
