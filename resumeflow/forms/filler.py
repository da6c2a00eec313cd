"""Populate an unknown application form for one queued task."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from playwright.sync_api import Page

from ..core.errors import FieldFillFailure, NavigationFailure
from .locator import FieldLocator, LocatedField
from .selectors import FIELD_KINDS, FIELD_ORDER, FieldKind

if TYPE_CHECKING:
    from ..queue.task import ApplicationTask

logger = logging.getLogger(__name__)

DEFAULT_NAVIGATION_TIMEOUT_MS: int = 30000
DEFAULT_SUBMIT_WAIT_MS: int = 3000


class FieldOutcome(Enum):
    """What happened to one logical field."""
    FILLED = "filled"
    NO_VALUE = "no_value"
    NOT_FOUND = "not_found"
    FILL_FAILED = "fill_failed"
    LOCATED = "located"
    SUBMITTED = "submitted"


@dataclass
class FillOutcome:
    """Result of preparing a form. status is always 'ready'."""
    landed_url: str
    fields: dict[str, FieldOutcome] = field(default_factory=dict)
    selectors: dict[str, str] = field(default_factory=dict)
    submitted: bool = False
    status: str = "ready"

    @property
    def filled_fields(self) -> list[str]:
        return [name for name, outcome in self.fields.items() if outcome == FieldOutcome.FILLED]

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "landedUrl": self.landed_url,
            "submitted": self.submitted,
            "fields": {name: outcome.value for name, outcome in self.fields.items()},
            "selectors": dict(self.selectors),
            "filled": self.filled_fields,
        }


class FormFiller:
    """Navigates to a task's form and fills whatever fields it can find.

    Missing or unfillable fields are logged and skipped; only navigation
    failure is fatal. Submission is controlled by `auto_submit` and is off
    by default: a located submit control is recorded, not clicked.
    """

    def __init__(
        self,
        locator: Optional[FieldLocator] = None,
        navigation_timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS,
        navigation_retries: int = 1,
        auto_submit: bool = False,
        submit_wait_ms: int = DEFAULT_SUBMIT_WAIT_MS,
    ) -> None:
        self._locator = locator or FieldLocator()
        self._navigation_timeout_ms = navigation_timeout_ms
        self._navigation_retries = max(1, navigation_retries)
        self._auto_submit = auto_submit
        self._submit_wait_ms = submit_wait_ms

    @property
    def auto_submit(self) -> bool:
        return self._auto_submit

    @property
    def locator(self) -> FieldLocator:
        return self._locator

    def fill(self, task: ApplicationTask, page: Page) -> FillOutcome:
        """Prepare the task's application form.

        Raises:
            NavigationFailure: If the target URL cannot be loaded.
        """
        self._navigate(page, task.job_redirect_url)

        outcome = FillOutcome(landed_url=page.url)
        for field_name in FIELD_ORDER:
            if field_name not in self._locator.selectors:
                continue
            located = self._locator.locate(page, field_name)
            if located is None:
                outcome.fields[field_name] = FieldOutcome.NOT_FOUND
                continue

            outcome.selectors[field_name] = located.selector
            try:
                outcome.fields[field_name] = self._apply(task, page, located)
            except FieldFillFailure as e:
                logger.warning(f"Task {task.id}: could not fill {e}")
                outcome.fields[field_name] = FieldOutcome.FILL_FAILED

        outcome.submitted = outcome.fields.get("submit") == FieldOutcome.SUBMITTED
        outcome.landed_url = page.url
        logger.info(
            f"Task {task.id}: form ready at {outcome.landed_url} "
            f"(filled {len(outcome.filled_fields)} fields)"
        )
        return outcome

    def _navigate(self, page: Page, url: str) -> None:
        """Load the URL and wait for network idle, with retries."""
        last_error: Optional[Exception] = None
        for attempt in range(self._navigation_retries):
            try:
                logger.info(f"Navigating to: {url} (attempt {attempt + 1})")
                page.goto(url, wait_until="networkidle", timeout=self._navigation_timeout_ms)
                return
            except Exception as e:
                last_error = e
                logger.warning(f"Navigation failed (attempt {attempt + 1}): {e}")

        logger.error(f"Navigation failed after {self._navigation_retries} attempts: {url}")
        raise NavigationFailure(f"Could not load {url}: {last_error}", url=url)

    def _apply(self, task: ApplicationTask, page: Page, located: LocatedField) -> FieldOutcome:
        """Run the fill action for one located field.

        Raises:
            FieldFillFailure: If the element rejects the action.
        """
        kind = FIELD_KINDS.get(located.name, FieldKind.TEXT)

        if kind == FieldKind.ACTION:
            if not self._auto_submit:
                return FieldOutcome.LOCATED
            return self._submit(page, located)

        if kind == FieldKind.FILE:
            if task.resume_attachment is None:
                return FieldOutcome.NO_VALUE
            try:
                located.element.set_input_files(task.resume_attachment.to_file_payload())
            except Exception as e:
                raise FieldFillFailure(located.name, located.selector, str(e)) from e
            logger.debug(f"Attached {task.resume_attachment.filename} to {located.selector}")
            return FieldOutcome.FILLED

        value = task.value_for(located.name)
        if value is None:
            return FieldOutcome.NO_VALUE
        try:
            located.element.fill(value)
        except Exception as e:
            raise FieldFillFailure(located.name, located.selector, str(e)) from e
        logger.debug(f"Filled {located.selector}")
        return FieldOutcome.FILLED

    def _submit(self, page: Page, located: LocatedField) -> FieldOutcome:
        try:
            located.element.click()
        except Exception as e:
            raise FieldFillFailure(located.name, located.selector, str(e)) from e
        try:
            page.wait_for_load_state("networkidle", timeout=self._submit_wait_ms)
        except Exception as e:
            logger.debug(f"Page still busy after submit: {e}")
        logger.info(f"Submitted form via {located.selector}")
        return FieldOutcome.SUBMITTED
