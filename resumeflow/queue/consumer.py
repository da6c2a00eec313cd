"""Background consumers that drain the application queue.

Each consumer runs in its own thread and owns:
- Its own BrowserSessionManager (Playwright is thread-bound)
- A FormFiller

Consumers only talk to each other through the TaskStore, whose claim and
finish operations are atomic.
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import TYPE_CHECKING, Callable, Optional

from ..browser.session import BrowserSessionManager
from ..core.errors import TaskFailure
from ..forms.filler import FormFiller
from ..forms.locator import FieldLocator
from ..forms.selectors import build_selector_table

if TYPE_CHECKING:
    from ..core.config import Settings
    from .store import TaskStore
    from .task import ApplicationTask

logger = logging.getLogger(__name__)

SHUTDOWN_TIMEOUT: float = 10.0

SessionFactory = Callable[[], BrowserSessionManager]
ResultCallback = Callable[["ApplicationTask", bool, dict], None]


def build_filler(settings: Settings) -> FormFiller:
    """FormFiller configured from settings."""
    locator = FieldLocator(
        selectors=build_selector_table(settings.forms.extra_selectors),
        timeout_ms=settings.browser.locator_timeout_ms,
    )
    return FormFiller(
        locator=locator,
        navigation_timeout_ms=settings.browser.navigation_timeout_ms,
        navigation_retries=settings.browser.navigation_retries,
        auto_submit=settings.forms.auto_submit,
        submit_wait_ms=settings.forms.submit_wait_ms,
    )


def session_factory_from(settings: Settings) -> SessionFactory:
    """Factory producing one BrowserSessionManager per consumer thread."""
    browser = settings.browser

    def factory() -> BrowserSessionManager:
        return BrowserSessionManager(
            headless=browser.headless,
            cdp_url=browser.cdp_url,
            launch_retries=browser.launch_retries,
            retry_delay=browser.retry_delay,
            navigation_timeout_ms=browser.navigation_timeout_ms,
            user_agent=browser.user_agent,
        )

    return factory


class QueueConsumer:
    """Claims tasks one at a time and runs them through a browser session."""

    def __init__(
        self,
        store: TaskStore,
        session_factory: SessionFactory,
        filler: FormFiller,
        worker_id: Optional[str] = None,
        poll_interval: float = 1.0,
        on_result: Optional[ResultCallback] = None,
    ) -> None:
        """Initialize the consumer.

        Args:
            store: Shared durable task store.
            session_factory: Creates this consumer's browser session manager.
            filler: Form filler used for every task.
            worker_id: Lease owner name; generated if omitted.
            poll_interval: Seconds to wait when the queue is empty.
            on_result: Callback(task, succeeded, payload), called from the consumer thread.
        """
        self._store = store
        self._session_factory = session_factory
        self._filler = filler
        self.worker_id = worker_id or f"consumer-{uuid.uuid4().hex[:8]}"
        self._poll_interval = poll_interval
        self._on_result = on_result

        self._thread: Optional[threading.Thread] = None
        self._stop_flag = threading.Event()
        self._processed = 0

    @property
    def is_running(self) -> bool:
        """Check if consumer thread is active."""
        return self._thread is not None and self._thread.is_alive()

    @property
    def processed(self) -> int:
        """Tasks brought to a terminal status by this consumer."""
        return self._processed

    def start(self) -> bool:
        """Start the consumer thread.

        Returns:
            True if started successfully, False if already running.
        """
        if self.is_running:
            logger.warning(f"{self.worker_id} already running")
            return False

        self._stop_flag.clear()
        self._thread = threading.Thread(target=self._run, daemon=True, name=self.worker_id)
        self._thread.start()
        logger.info(f"{self.worker_id} thread started")
        return True

    def stop(self) -> None:
        """Signal the consumer to stop after its current task."""
        if self.is_running:
            logger.info(f"Stopping {self.worker_id}...")
        self._stop_flag.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for the consumer thread to stop.

        Returns:
            True if stopped, False if timeout expired.
        """
        if self._thread is None:
            return True
        self._thread.join(timeout=timeout or SHUTDOWN_TIMEOUT)
        return not self._thread.is_alive()

    def _run(self) -> None:
        """Main consumer loop running in background thread."""
        logger.info(f"{self.worker_id} loop starting")
        sessions = self._session_factory()
        try:
            while not self._stop_flag.is_set():
                if not self.run_once(sessions):
                    self._stop_flag.wait(self._poll_interval)
        finally:
            sessions.close()
            logger.info(f"{self.worker_id} loop stopped")

    def run_once(self, sessions: BrowserSessionManager) -> bool:
        """Claim and process at most one task.

        Returns:
            True if a task was claimed, False if the queue was empty or
            the store was unreachable.
        """
        try:
            task = self._store.claim(self.worker_id)
        except Exception as e:
            logger.error(f"{self.worker_id} could not claim: {e}")
            return False

        if task is None:
            return False

        self.process(task, sessions)
        return True

    def process(self, task: ApplicationTask, sessions: BrowserSessionManager) -> None:
        """Run one claimed task to a terminal status. Never raises."""
        logger.info(f"{self.worker_id} processing {task.id}: {task.job_redirect_url}")

        try:
            with sessions.session() as page:
                outcome = self._filler.fill(task, page)
            succeeded, payload = True, outcome.to_dict()
        except TaskFailure as e:
            logger.error(f"Task {task.id} failed at {e.stage}: {e.message}")
            succeeded, payload = False, e.to_dict()
        except Exception as e:
            logger.exception(f"Task {task.id} crashed: {e}")
            succeeded, payload = False, TaskFailure.from_exception(e, task.job_redirect_url).to_dict()

        try:
            if succeeded:
                recorded = self._store.complete(task.id, self.worker_id, payload)
            else:
                recorded = self._store.fail(task.id, self.worker_id, payload)
        except Exception as e:
            # Lease will expire and the task is redelivered
            logger.error(f"Could not record result for {task.id}: {e}")
            return

        if recorded:
            self._processed += 1
            self._emit_result(task, succeeded, payload)

    def _emit_result(self, task: ApplicationTask, succeeded: bool, payload: dict) -> None:
        if self._on_result:
            try:
                self._on_result(task, succeeded, payload)
            except Exception as e:
                logger.error(f"Result callback error: {e}")


class ConsumerPool:
    """A fixed number of QueueConsumers sharing one TaskStore."""

    def __init__(
        self,
        store: TaskStore,
        session_factory: SessionFactory,
        filler: FormFiller,
        concurrency: int = 1,
        poll_interval: float = 1.0,
        on_result: Optional[ResultCallback] = None,
    ) -> None:
        self._consumers = [
            QueueConsumer(
                store,
                session_factory,
                filler,
                worker_id=f"consumer-{index + 1}-{uuid.uuid4().hex[:6]}",
                poll_interval=poll_interval,
                on_result=on_result,
            )
            for index in range(max(1, concurrency))
        ]

    @classmethod
    def from_settings(cls, settings: Settings, store: TaskStore) -> ConsumerPool:
        return cls(
            store,
            session_factory_from(settings),
            build_filler(settings),
            concurrency=settings.queue.concurrency,
            poll_interval=settings.queue.poll_interval,
        )

    @property
    def consumers(self) -> list[QueueConsumer]:
        return list(self._consumers)

    @property
    def is_running(self) -> bool:
        return any(c.is_running for c in self._consumers)

    def start(self) -> None:
        for consumer in self._consumers:
            consumer.start()
        logger.info(f"Started {len(self._consumers)} queue consumer(s)")

    def stop(self, timeout: Optional[float] = None) -> bool:
        """Stop all consumers and wait for them. Returns True if all stopped."""
        for consumer in self._consumers:
            consumer.stop()
        return all(consumer.wait(timeout) for consumer in self._consumers)
