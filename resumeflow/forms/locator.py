"""Heuristic, fallback-ordered field location."""
import logging
from dataclasses import dataclass
from typing import Optional

from playwright.sync_api import ElementHandle, Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from .selectors import FIELD_SELECTORS

logger = logging.getLogger(__name__)

DEFAULT_LOCATOR_TIMEOUT_MS: int = 5000


@dataclass
class LocatedField:
    """An element resolved for a logical field."""
    name: str
    selector: str
    element: ElementHandle
    pattern_index: int = 0


class FieldLocator:
    """Tries each selector pattern for a field until one resolves."""

    def __init__(
        self,
        selectors: Optional[dict[str, list[str]]] = None,
        timeout_ms: int = DEFAULT_LOCATOR_TIMEOUT_MS,
    ) -> None:
        self._selectors = selectors if selectors is not None else FIELD_SELECTORS
        self._timeout_ms = timeout_ms

    @property
    def selectors(self) -> dict[str, list[str]]:
        return self._selectors

    def locate(self, page: Page, field_name: str) -> Optional[LocatedField]:
        """Resolve a logical field on the page.

        Each pattern gets its own bounded wait. A pattern that times out is
        not an error; the next one is tried.

        Returns:
            The first element found, or None if no pattern matched.
        """
        patterns = self._selectors.get(field_name)
        if not patterns:
            logger.warning(f"No selector patterns defined for field '{field_name}'")
            return None

        for index, selector in enumerate(patterns):
            try:
                element = page.wait_for_selector(
                    selector, timeout=self._timeout_ms, state="attached"
                )
            except PlaywrightTimeoutError:
                logger.debug(f"Selector {selector} not found for {field_name}")
                continue
            except Exception as e:
                logger.debug(f"Selector {selector} failed for {field_name}: {e}")
                continue

            if element is not None:
                logger.info(f"Located {field_name} via {selector}")
                return LocatedField(field_name, selector, element, index)

        logger.info(f"Field {field_name} not present on {page.url}")
        return None
