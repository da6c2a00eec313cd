"""CLI entry point for ResumeFlow."""
import argparse
import json
import logging
import mimetypes
import sys
import threading
import time
from pathlib import Path
from typing import Optional

from resumeflow.browser.session import BrowserSessionManager
from resumeflow.core.config import Settings
from resumeflow.core.errors import ValidationError
from resumeflow.core.logging import setup_logging
from resumeflow.intake import mass_apply
from resumeflow.queue.consumer import ConsumerPool, QueueConsumer, build_filler, session_factory_from
from resumeflow.queue.store import TaskStore
from resumeflow.queue.task import ResumeAttachment, TaskStatus
from resumeflow.scoring import analyze_resume, extract_text

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = Path("config/settings.yaml")


def _store(settings: Settings) -> TaskStore:
    return TaskStore(
        settings.queue.database_url,
        lease_seconds=settings.queue.lease_seconds,
        claim_candidates=settings.queue.claim_candidates,
    )


def _load_resume(path: Optional[str]) -> Optional[ResumeAttachment]:
    if not path:
        return None
    resume_path = Path(path)
    if not resume_path.exists():
        logger.warning(f"Resume not found: {resume_path}")
        return None
    mime_type = mimetypes.guess_type(resume_path.name)[0] or "application/octet-stream"
    return ResumeAttachment(resume_path.name, resume_path.read_bytes(), mime_type)


def cmd_serve(settings: Settings, args: argparse.Namespace) -> int:
    import uvicorn

    from resumeflow.api.app import create_app

    if args.no_consumers:
        settings.api.run_consumers = False
    uvicorn.run(create_app(settings), host=settings.api.host, port=args.port or settings.api.port)
    return 0


def cmd_worker(settings: Settings, args: argparse.Namespace) -> int:
    if args.concurrency:
        settings.queue.concurrency = args.concurrency
    store = _store(settings)
    pool = ConsumerPool.from_settings(settings, store)
    pool.start()
    stop = threading.Event()
    try:
        while pool.is_running:
            stop.wait(1.0)
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping consumers")
    finally:
        pool.stop()
        store.close()
    return 0


def cmd_apply(settings: Settings, args: argparse.Namespace) -> int:
    store = _store(settings)
    try:
        return _apply(store, settings, args)
    finally:
        store.close()


def _apply(store: TaskStore, settings: Settings, args: argparse.Namespace) -> int:
    resume = _load_resume(args.resume)
    applicant = {"name": args.name or "", "email": args.email or ""}
    jobs = [{"redirect_url": url} for url in args.urls]

    try:
        response = mass_apply(store, jobs, resume, applicant)
    except ValidationError as e:
        logger.error(f"Rejected: {e}")
        return 1
    print(json.dumps(response, indent=2))

    if not args.inline:
        return 0

    factory = session_factory_from(settings)
    consumer = QueueConsumer(store, factory, build_filler(settings))
    sessions = factory()
    try:
        return process_inline(
            store, consumer, sessions, response["taskIds"], settings.queue.poll_interval
        )
    finally:
        sessions.close()


def process_inline(
    store: TaskStore,
    consumer: QueueConsumer,
    sessions: BrowserSessionManager,
    task_ids: list[Optional[str]],
    poll_interval: float = 1.0,
) -> int:
    """Consume until every given task is terminal, then print them.

    Tasks queued ahead of ours are processed too, since claims are FIFO.
    A task held by another worker is waited for, not re-run.

    Returns:
        0 if every task succeeded, 1 otherwise.
    """
    pending = [task_id for task_id in task_ids if task_id]
    while pending:
        if not consumer.run_once(sessions):
            time.sleep(poll_interval)
        pending = [task_id for task_id in pending if not store.get(task_id).status.is_terminal]

    exit_code = 0
    for task_id in task_ids:
        if not task_id:
            exit_code = 1
            continue
        task = store.get(task_id)
        print(json.dumps(task.summary(), indent=2))
        if task.status != TaskStatus.SUCCEEDED:
            exit_code = 1
    return exit_code


def cmd_analyze(settings: Settings, args: argparse.Namespace) -> int:
    try:
        text = extract_text(Path(args.pdf).read_bytes())
        analysis = analyze_resume(text, args.category)
    except ValidationError as e:
        logger.error(str(e))
        return 1
    print(json.dumps(analysis.to_dict(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Score resumes, search jobs and fill application forms"
    )
    parser.add_argument(
        "--config", "-c",
        default=str(DEFAULT_CONFIG),
        help="Path to settings YAML file"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--port", type=int, help="Override the configured port")
    serve.add_argument(
        "--no-consumers",
        action="store_true",
        help="Accept requests only; run consumers with 'worker'"
    )
    serve.set_defaults(func=cmd_serve)

    worker = sub.add_parser("worker", help="Process queued applications")
    worker.add_argument("--concurrency", "-n", type=int, help="Number of consumers")
    worker.set_defaults(func=cmd_worker)

    apply = sub.add_parser("apply", help="Queue applications for one or more URLs")
    apply.add_argument("urls", nargs="+", help="Application form URLs")
    apply.add_argument("--resume", "-r", help="Path to resume file")
    apply.add_argument("--name", help="Applicant name")
    apply.add_argument("--email", help="Applicant email")
    apply.add_argument(
        "--inline",
        action="store_true",
        help="Process the queue in this process and print results"
    )
    apply.set_defaults(func=cmd_apply)

    analyze = sub.add_parser("analyze", help="Score a PDF resume")
    analyze.add_argument("pdf", help="Path to resume PDF")
    analyze.add_argument("--category", default="software", help="Job category")
    analyze.set_defaults(func=cmd_analyze)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Run the CLI."""
    args = build_parser().parse_args(argv)
    settings = Settings.load(Path(args.config))
    setup_logging("DEBUG" if args.debug else settings.log_level)
    return args.func(settings, args)


if __name__ == "__main__":
    sys.exit(main())
