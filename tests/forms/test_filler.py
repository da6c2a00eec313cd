"""Tests for FormFiller."""
from unittest.mock import Mock

import pytest
from playwright.sync_api import ElementHandle, Page
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from resumeflow.core.errors import NavigationFailure
from resumeflow.forms.filler import FieldOutcome, FillOutcome, FormFiller
from resumeflow.forms.locator import FieldLocator
from resumeflow.queue.task import ApplicationTask, ResumeAttachment

JOB_URL = "https://example.com/apply"


def make_page(present: dict[str, ElementHandle], landed_url: str = JOB_URL) -> Mock:
    """Page that navigates fine and resolves only the given selectors."""
    page = Mock(spec=Page)
    page.url = landed_url
    page.goto = Mock()

    def wait_for_selector(selector: str, timeout: int = 0, state: str = "") -> ElementHandle:
        if selector in present:
            return present[selector]
        raise PlaywrightTimeoutError(f"waiting for {selector}")

    page.wait_for_selector = Mock(side_effect=wait_for_selector)
    return page


@pytest.fixture
def resume() -> ResumeAttachment:
    return ResumeAttachment("resume.pdf", b"%PDF-1.4 test")


@pytest.fixture
def task(resume: ResumeAttachment) -> ApplicationTask:
    return ApplicationTask(
        id="task-1",
        job_redirect_url=JOB_URL,
        applicant_fields={"name": "Ada Lovelace", "email": "a@b.com"},
        resume_attachment=resume,
    )


@pytest.fixture
def filler() -> FormFiller:
    return FormFiller(locator=FieldLocator(timeout_ms=10))


class TestNavigation:
    def test_waits_for_network_idle(self, filler: FormFiller, task: ApplicationTask) -> None:
        page = make_page({})
        filler.fill(task, page)
        page.goto.assert_called_once()
        args, kwargs = page.goto.call_args
        assert args[0] == JOB_URL
        assert kwargs["wait_until"] == "networkidle"

    def test_unreachable_url_raises_navigation_failure(
        self, filler: FormFiller, task: ApplicationTask
    ) -> None:
        page = make_page({})
        page.goto.side_effect = PlaywrightError("net::ERR_NAME_NOT_RESOLVED")

        with pytest.raises(NavigationFailure) as exc_info:
            filler.fill(task, page)

        assert exc_info.value.stage == "navigate"
        assert exc_info.value.url == JOB_URL
        page.wait_for_selector.assert_not_called()

    def test_navigation_retries(self, task: ApplicationTask) -> None:
        filler = FormFiller(locator=FieldLocator(timeout_ms=10), navigation_retries=3)
        page = make_page({})
        page.goto.side_effect = [PlaywrightTimeoutError("slow"), PlaywrightTimeoutError("slow"), None]

        outcome = filler.fill(task, page)

        assert page.goto.call_count == 3
        assert outcome.status == "ready"

    def test_navigation_fails_after_all_retries(self, task: ApplicationTask) -> None:
        filler = FormFiller(locator=FieldLocator(timeout_ms=10), navigation_retries=2)
        page = make_page({})
        page.goto.side_effect = PlaywrightTimeoutError("never idle")

        with pytest.raises(NavigationFailure):
            filler.fill(task, page)
        assert page.goto.call_count == 2


class TestFieldFilling:
    def test_fills_email_via_most_specific_selector(
        self, filler: FormFiller, task: ApplicationTask
    ) -> None:
        email = Mock(spec=ElementHandle)
        page = make_page({'input[type="email"]': email}, landed_url="https://example.com/apply?step=1")

        outcome = filler.fill(task, page)

        email.fill.assert_called_once_with("a@b.com")
        assert outcome.fields["email"] == FieldOutcome.FILLED
        assert outcome.selectors["email"] == 'input[type="email"]'
        assert outcome.landed_url == "https://example.com/apply?step=1"

    def test_no_fields_found_is_still_ready(
        self, filler: FormFiller, task: ApplicationTask
    ) -> None:
        page = make_page({})

        outcome = filler.fill(task, page)

        assert outcome.status == "ready"
        assert outcome.filled_fields == []
        assert all(o == FieldOutcome.NOT_FOUND for o in outcome.fields.values())
        assert list(outcome.fields) == ["name", "email", "resume", "submit"]

    def test_resume_attached_as_file_payload(
        self, filler: FormFiller, task: ApplicationTask
    ) -> None:
        file_input = Mock(spec=ElementHandle)
        page = make_page({'input[type="file"]': file_input})

        outcome = filler.fill(task, page)

        file_input.set_input_files.assert_called_once_with(
            {"name": "resume.pdf", "mimeType": "application/pdf", "buffer": b"%PDF-1.4 test"}
        )
        assert outcome.fields["resume"] == FieldOutcome.FILLED

    def test_missing_file_input_is_skipped(
        self, filler: FormFiller, task: ApplicationTask
    ) -> None:
        email = Mock(spec=ElementHandle)
        page = make_page({'input[type="email"]': email})

        outcome = filler.fill(task, page)

        assert outcome.fields["resume"] == FieldOutcome.NOT_FOUND
        assert outcome.status == "ready"

    def test_found_field_without_value_is_untouched(self, filler: FormFiller) -> None:
        task = ApplicationTask(job_redirect_url=JOB_URL, applicant_fields={"email": "a@b.com"})
        name = Mock(spec=ElementHandle)
        file_input = Mock(spec=ElementHandle)
        page = make_page({'input[name*="name" i]': name, 'input[type="file"]': file_input})

        outcome = filler.fill(task, page)

        name.fill.assert_not_called()
        file_input.set_input_files.assert_not_called()
        assert outcome.fields["name"] == FieldOutcome.NO_VALUE
        assert outcome.fields["resume"] == FieldOutcome.NO_VALUE

    def test_stale_element_does_not_abort_task(
        self, filler: FormFiller, task: ApplicationTask
    ) -> None:
        name = Mock(spec=ElementHandle)
        name.fill.side_effect = PlaywrightError("Element is not attached to the DOM")
        email = Mock(spec=ElementHandle)
        page = make_page({'input[name*="name" i]': name, 'input[type="email"]': email})

        outcome = filler.fill(task, page)

        assert outcome.fields["name"] == FieldOutcome.FILL_FAILED
        assert outcome.fields["email"] == FieldOutcome.FILLED
        email.fill.assert_called_once_with("a@b.com")

    def test_fill_is_repeatable_for_same_task(
        self, filler: FormFiller, task: ApplicationTask
    ) -> None:
        email = Mock(spec=ElementHandle)
        page = make_page({'input[type="email"]': email})

        first = filler.fill(task, page)
        second = filler.fill(task, page)

        assert first.to_dict() == second.to_dict()


class TestSubmitPolicy:
    def test_submit_located_but_not_clicked_by_default(
        self, filler: FormFiller, task: ApplicationTask
    ) -> None:
        button = Mock(spec=ElementHandle)
        page = make_page({'button[type="submit"]': button})

        outcome = filler.fill(task, page)

        button.click.assert_not_called()
        assert outcome.fields["submit"] == FieldOutcome.LOCATED
        assert outcome.submitted is False

    def test_auto_submit_clicks(self, task: ApplicationTask) -> None:
        filler = FormFiller(locator=FieldLocator(timeout_ms=10), auto_submit=True)
        button = Mock(spec=ElementHandle)
        page = make_page({'input[type="submit"]': button})

        outcome = filler.fill(task, page)

        button.click.assert_called_once()
        assert outcome.fields["submit"] == FieldOutcome.SUBMITTED
        assert outcome.submitted is True

    def test_auto_submit_click_failure_is_per_field(self, task: ApplicationTask) -> None:
        filler = FormFiller(locator=FieldLocator(timeout_ms=10), auto_submit=True)
        button = Mock(spec=ElementHandle)
        button.click.side_effect = PlaywrightError("intercepted")
        page = make_page({'button[type="submit"]': button})

        outcome = filler.fill(task, page)

        assert outcome.fields["submit"] == FieldOutcome.FILL_FAILED
        assert outcome.submitted is False


class TestFillOutcome:
    def test_to_dict(self) -> None:
        outcome = FillOutcome(
            landed_url=JOB_URL,
            fields={"email": FieldOutcome.FILLED, "name": FieldOutcome.NOT_FOUND},
            selectors={"email": 'input[type="email"]'},
        )
        data = outcome.to_dict()
        assert data["status"] == "ready"
        assert data["landedUrl"] == JOB_URL
        assert data["fields"] == {"email": "filled", "name": "not_found"}
        assert data["filled"] == ["email"]
