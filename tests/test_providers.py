"""Tests for job provider clients and result aggregation."""
import httpx
import pytest

from resumeflow.scraper.aggregator import aggregate, group_by_country
from resumeflow.scraper.models import JobRecord
from resumeflow.scraper.providers import AdzunaClient, JSearchClient


def make_client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


JSEARCH_ROWS = [
    {
        "job_id": "j1",
        "job_title": "Python Developer",
        "employer_name": "Acme",
        "job_city": "Berlin",
        "job_country": "DE",
        "job_description": "Build things",
        "job_apply_link": "https://acme.example.com/apply/1",
        "job_is_remote": True,
    },
    {"job_id": "j2", "job_title": "No link", "job_apply_link": None},
]


class TestJSearchClient:
    def test_normalizes_rows_and_drops_unlinked(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"data": JSEARCH_ROWS})

        client = JSearchClient("key", client=make_client(handler))
        jobs = client.search(["python"], "software")

        assert len(jobs) == 1
        job = jobs[0]
        assert job.redirect_url == "https://acme.example.com/apply/1"
        assert job.location == "Berlin, DE"
        assert job.is_remote is True
        assert job.source == "jsearch"
        assert requests[0].headers["X-RapidAPI-Key"] == "key"
        assert requests[0].url.params["query"] == "python remote"

    def test_office_admin_query(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.params["query"])
            return httpx.Response(200, json={"data": []})

        client = JSearchClient("key", client=make_client(handler))
        client.search(["typing"], "officeAdmin", include_remote=False)

        assert seen == ["administrative OR office"]

    def test_empty_keywords_fall_back_to_category(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.params["query"])
            return httpx.Response(200, json={"data": []})

        JSearchClient("key", client=make_client(handler)).search([], "finance", False)

        assert seen == ["accountant"]

    @pytest.mark.parametrize(
        "response",
        [httpx.Response(429, text="rate limited"), httpx.Response(200, text="not json")],
    )
    def test_provider_errors_yield_no_jobs(self, response: httpx.Response) -> None:
        client = JSearchClient("key", client=make_client(lambda request: response))
        assert client.search(["python"], "software") == []

    def test_transport_error_yields_no_jobs(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("down", request=request)

        client = JSearchClient("key", client=make_client(handler))
        assert client.search(["python"], "software") == []


class TestAdzunaClient:
    ROWS = [
        {
            "id": "a1",
            "title": "Remote Accountant",
            "description": "Books",
            "redirect_url": "https://adzuna.example.com/1",
            "company": {"display_name": "Ledger Co"},
            "location": {"display_name": "London", "area": ["UK", "London"]},
            "salary_min": 30000,
        },
        {
            "id": "a2",
            "title": "Accountant",
            "description": "On site",
            "redirect_url": "https://adzuna.example.com/2",
        },
    ]

    def test_search_params_and_normalization(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"results": self.ROWS})

        client = AdzunaClient("id", "key", country="gb", client=make_client(handler))
        jobs = client.search("finance", category_tag="accounting-finance-jobs")

        assert [j.id for j in jobs] == ["a1", "a2"]
        assert jobs[0].country == "UK"
        assert jobs[0].company == "Ledger Co"
        assert jobs[1].country == "GB"
        assert jobs[1].company == "Unknown Company"
        params = requests[0].url.params
        assert requests[0].url.path == "/v1/api/jobs/gb/search/1"
        assert params["what"] == "finance"
        assert params["category"] == "accounting-finance-jobs"

    def test_remote_filter_uses_text(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"results": self.ROWS})

        client = AdzunaClient("id", "key", client=make_client(handler))
        jobs = client.search("finance", remote=True)

        assert [j.id for j in jobs] == ["a1"]

    def test_http_error_yields_no_jobs(self) -> None:
        client = AdzunaClient(
            "id", "key", client=make_client(lambda request: httpx.Response(500))
        )
        assert client.search("finance") == []


def job(id: str, url: str, source: str = "jsearch", country: str = "US") -> JobRecord:
    return JobRecord(
        id=id, title="t", company="c", location="", description="",
        redirect_url=url, country=country, source=source,
    )


class TestAggregate:
    def test_drops_duplicate_urls_first_wins(self) -> None:
        first = job("1", "https://x/1", source="jsearch")
        dup = job("9", "https://x/1", source="adzuna")

        merged = aggregate([first], [dup, job("2", "https://x/2", source="adzuna")])

        assert [j.id for j in merged] == ["1", "2"]

    def test_drops_duplicate_source_ids(self) -> None:
        merged = aggregate([job("1", "https://x/1")], [job("1", "https://x/other")])
        assert len(merged) == 1

    def test_group_by_country(self) -> None:
        groups = group_by_country(
            [job("1", "u1", country="US"), job("2", "u2", country=""), job("3", "u3", country="US")]
        )
        assert [j.id for j in groups["US"]] == ["1", "3"]
        assert [j.id for j in groups["Unknown"]] == ["2"]
