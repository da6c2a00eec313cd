"""Tests for FieldLocator."""
from unittest.mock import Mock

import pytest
from playwright.sync_api import ElementHandle, Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from resumeflow.forms.locator import FieldLocator, LocatedField
from resumeflow.forms.selectors import FIELD_SELECTORS, build_selector_table


def make_page(present: dict[str, ElementHandle]) -> Mock:
    """Page whose wait_for_selector resolves only the given selectors."""
    page = Mock(spec=Page)
    page.url = "https://example.com/apply"

    def wait_for_selector(selector: str, timeout: int = 0, state: str = "") -> ElementHandle:
        if selector in present:
            return present[selector]
        raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")

    page.wait_for_selector = Mock(side_effect=wait_for_selector)
    return page


@pytest.fixture
def element() -> Mock:
    return Mock(spec=ElementHandle)


class TestSelectorTable:
    def test_defines_all_logical_fields(self) -> None:
        for field in ["name", "email", "resume", "submit"]:
            assert field in FIELD_SELECTORS
            assert len(FIELD_SELECTORS[field]) > 0

    def test_email_type_is_most_specific(self) -> None:
        assert FIELD_SELECTORS["email"][0] == 'input[type="email"]'

    def test_extra_selectors_are_appended_after_builtins(self) -> None:
        table = build_selector_table({"email": ['input[autocomplete="email"]']})
        assert table["email"][:2] == FIELD_SELECTORS["email"]
        assert table["email"][-1] == 'input[autocomplete="email"]'

    def test_extra_selectors_do_not_mutate_defaults(self) -> None:
        build_selector_table({"name": ["#full-name"]})
        assert "#full-name" not in FIELD_SELECTORS["name"]

    def test_unknown_extra_fields_are_ignored(self) -> None:
        table = build_selector_table({"phone": ['input[type="tel"]']})
        assert "phone" not in table

    def test_duplicate_extra_selector_not_added_twice(self) -> None:
        table = build_selector_table({"submit": ['button[type="submit"]']})
        assert table["submit"].count('button[type="submit"]') == 1


class TestLocate:
    def test_first_pattern_wins(self, element: Mock) -> None:
        page = make_page({
            'input[type="email"]': element,
            'input[name*="email" i]': Mock(spec=ElementHandle),
        })
        locator = FieldLocator()

        located = locator.locate(page, "email")

        assert isinstance(located, LocatedField)
        assert located.element is element
        assert located.selector == 'input[type="email"]'
        assert located.pattern_index == 0
        assert page.wait_for_selector.call_count == 1

    def test_falls_back_to_next_pattern_on_timeout(self, element: Mock) -> None:
        page = make_page({'input[placeholder*="name" i]': element})
        locator = FieldLocator()

        located = locator.locate(page, "name")

        assert located is not None
        assert located.selector == 'input[placeholder*="name" i]'
        assert located.pattern_index == 1
        assert page.wait_for_selector.call_count == 2

    def test_returns_none_when_every_pattern_times_out(self) -> None:
        page = make_page({})
        locator = FieldLocator()

        assert locator.locate(page, "resume") is None
        assert page.wait_for_selector.call_count == len(FIELD_SELECTORS["resume"])

    def test_each_attempt_uses_bounded_timeout(self, element: Mock) -> None:
        page = make_page({'button[type="submit"]': element})
        locator = FieldLocator(timeout_ms=1234)

        locator.locate(page, "submit")

        _, kwargs = page.wait_for_selector.call_args
        assert kwargs["timeout"] == 1234

    def test_default_timeout_is_five_seconds(self) -> None:
        page = make_page({})
        FieldLocator().locate(page, "submit")
        for call in page.wait_for_selector.call_args_list:
            assert call.kwargs["timeout"] == 5000

    def test_unknown_field_returns_none_without_waiting(self) -> None:
        page = make_page({})
        assert FieldLocator().locate(page, "phone") is None
        page.wait_for_selector.assert_not_called()

    def test_other_errors_are_not_fatal(self, element: Mock) -> None:
        page = Mock(spec=Page)
        page.url = "https://example.com"
        page.wait_for_selector = Mock(side_effect=[RuntimeError("detached"), element])

        located = FieldLocator().locate(page, "email")

        assert located is not None
        assert located.pattern_index == 1

    def test_custom_table(self, element: Mock) -> None:
        page = make_page({"#applicant-name": element})
        locator = FieldLocator(selectors={"name": ["#applicant-name"]})

        located = locator.locate(page, "name")

        assert located is not None
        assert located.selector == "#applicant-name"
