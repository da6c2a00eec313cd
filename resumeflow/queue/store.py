"""Durable application queue backed by SQLAlchemy."""
import logging
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

from sqlalchemy import and_, create_engine, func, or_, select, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..core.errors import ValidationError
from .task import ApplicationTask, ResumeAttachment, TaskStatus, check_transition
from .tables import Base, ResumeBlob, TaskRecord, utcnow

logger = logging.getLogger(__name__)

DEFAULT_LEASE_SECONDS: float = 600.0
DEFAULT_CLAIM_CANDIDATES: int = 5

# Backends with INSERT ... ON CONFLICT DO NOTHING
CONFLICT_INSERTS = {"sqlite": sqlite_insert, "postgresql": postgresql_insert}


def create_queue_engine(database_url: str) -> Engine:
    """Create an engine suitable for several consumer threads.

    SQLite files get their parent directory created; in-memory SQLite
    shares a single connection across threads.
    """
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return create_engine(database_url, pool_pre_ping=True, pool_recycle=300)

    connect_args = {"check_same_thread": False, "timeout": 30}
    if not url.database or url.database == ":memory:":
        return create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)

    Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(database_url, connect_args=connect_args)


class TaskStore:
    """Persistent queue of application tasks.

    Every status change is a conditional UPDATE, so two consumers can
    never claim or finish the same task concurrently.
    """

    def __init__(
        self,
        database_url: str = "sqlite:///data/resumeflow.db",
        lease_seconds: float = DEFAULT_LEASE_SECONDS,
        claim_candidates: int = DEFAULT_CLAIM_CANDIDATES,
        engine: Optional[Engine] = None,
    ) -> None:
        self._engine = engine or create_queue_engine(database_url)
        self._session_factory = sessionmaker(
            bind=self._engine, autoflush=False, expire_on_commit=False
        )
        self._lease = timedelta(seconds=lease_seconds)
        self._claim_candidates = max(1, claim_candidates)
        Base.metadata.create_all(bind=self._engine)

    @property
    def engine(self) -> Engine:
        return self._engine

    def close(self) -> None:
        """Dispose of pooled connections."""
        self._engine.dispose()

    # -- enqueue -----------------------------------------------------------

    def enqueue_one(self, task: ApplicationTask) -> str:
        """Persist a task in queued status and return its id.

        Raises:
            ValidationError: If the task has no usable redirect URL.
        """
        try:
            task.validate()
        except ValueError as e:
            raise ValidationError(str(e)) from e

        with self._session_factory() as session:
            record = self._insert(session, task)
            session.commit()
        logger.info(f"Enqueued task {record.id} for {task.job_redirect_url}")
        return record.id

    def enqueue_batch(self, tasks: list[ApplicationTask]) -> list[Optional[str]]:
        """Persist many tasks in one transaction.

        Returns ids in submission order. A task that fails validation gets
        None in its slot and does not affect the others.
        """
        ids: list[Optional[str]] = []
        records: list[Optional[TaskRecord]] = []
        with self._session_factory() as session:
            for index, task in enumerate(tasks):
                try:
                    task.validate()
                except ValueError as e:
                    logger.warning(f"Rejected batch item {index}: {e}")
                    records.append(None)
                    continue
                records.append(self._insert(session, task))
            session.commit()

        for record in records:
            ids.append(record.id if record is not None else None)
        accepted = sum(1 for i in ids if i)
        logger.info(f"Enqueued batch: {accepted}/{len(tasks)} tasks accepted")
        return ids

    def _insert(self, session: Session, task: ApplicationTask) -> TaskRecord:
        digest = None
        if task.resume_attachment is not None:
            digest = self._store_resume(session, task.resume_attachment)

        record = TaskRecord(
            job_redirect_url=task.job_redirect_url.strip(),
            job_title=task.job_title,
            company=task.company,
            applicant_fields=dict(task.applicant_fields),
            resume_digest=digest,
            is_batch_member=task.is_batch_member,
            batch_id=task.batch_id,
            status=TaskStatus.QUEUED.value,
        )
        session.add(record)
        session.flush()
        task.id = record.id
        task.status = TaskStatus.QUEUED
        task.created_at = record.created_at
        return record

    def _store_resume(self, session: Session, attachment: ResumeAttachment) -> str:
        """Store the resume once per digest.

        Concurrent enqueues may carry the same resume, so an existing row
        is never an error.
        """
        digest = attachment.digest
        values = {
            "digest": digest,
            "filename": attachment.filename,
            "mime_type": attachment.mime_type,
            "content": attachment.content,
            "created_at": utcnow(),
        }

        conflict_insert = CONFLICT_INSERTS.get(session.get_bind().dialect.name)
        if conflict_insert is not None:
            session.execute(
                conflict_insert(ResumeBlob)
                .values(**values)
                .on_conflict_do_nothing(index_elements=[ResumeBlob.digest])
            )
            return digest

        if session.get(ResumeBlob, digest) is not None:
            return digest
        try:
            with session.begin_nested():
                session.add(ResumeBlob(**values))
        except IntegrityError:
            logger.debug(f"Resume {digest[:12]} stored by a concurrent enqueue")
        return digest

    # -- consumer side -----------------------------------------------------

    def _claimable(self, now):
        return or_(
            TaskRecord.status == TaskStatus.QUEUED.value,
            and_(
                TaskRecord.status == TaskStatus.ACTIVE.value,
                TaskRecord.lease_expires_at < now,
            ),
        )

    def claim(self, worker_id: str) -> Optional[ApplicationTask]:
        """Atomically move the oldest claimable task to active.

        A task is claimable when queued, or when active with an expired
        lease (its previous owner is presumed dead).

        Returns:
            The claimed task, or None if nothing is claimable.
        """
        now = utcnow()
        with self._session_factory() as session:
            # Losing every candidate to other consumers means re-reading the head
            while candidates := self._candidate_ids(session, now):
                claimed = self._claim_first(session, candidates, worker_id, now)
                if claimed is not None:
                    return claimed
                session.rollback()
                logger.debug(f"{worker_id} lost {len(candidates)} candidates, re-reading queue")
        return None

    def _candidate_ids(self, session: Session, now) -> list[str]:
        return list(
            session.scalars(
                select(TaskRecord.id)
                .where(self._claimable(now))
                .order_by(TaskRecord.seq)
                .limit(self._claim_candidates)
            ).all()
        )

    def _claim_first(
        self, session: Session, candidates: list[str], worker_id: str, now
    ) -> Optional[ApplicationTask]:
        for task_id in candidates:
            result = session.execute(
                update(TaskRecord)
                .where(TaskRecord.id == task_id, self._claimable(now))
                .values(
                    status=TaskStatus.ACTIVE.value,
                    lease_owner=worker_id,
                    lease_expires_at=now + self._lease,
                    attempts=TaskRecord.attempts + 1,
                    started_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                # Another consumer got there first
                continue

            session.commit()
            record = session.scalars(
                select(TaskRecord).where(TaskRecord.id == task_id)
            ).one()
            if record.attempts > 1:
                logger.warning(
                    f"Redelivering task {task_id} to {worker_id} "
                    f"(attempt {record.attempts})"
                )
            else:
                logger.info(f"{worker_id} claimed task {task_id}")
            return self._to_task(record)
        return None

    def complete(self, task_id: str, worker_id: str, result: dict[str, Any]) -> bool:
        """Mark an active task succeeded. Returns False if the lease was lost."""
        return self._finish(task_id, worker_id, TaskStatus.SUCCEEDED, result)

    def fail(self, task_id: str, worker_id: str, cause: dict[str, Any]) -> bool:
        """Mark an active task failed. Returns False if the lease was lost."""
        return self._finish(task_id, worker_id, TaskStatus.FAILED, cause)

    def _finish(
        self, task_id: str, worker_id: str, status: TaskStatus, payload: dict[str, Any]
    ) -> bool:
        check_transition(TaskStatus.ACTIVE, status)
        with self._session_factory() as session:
            result = session.execute(
                update(TaskRecord)
                .where(
                    TaskRecord.id == task_id,
                    TaskRecord.status == TaskStatus.ACTIVE.value,
                    TaskRecord.lease_owner == worker_id,
                )
                .values(
                    status=status.value,
                    result=payload,
                    finished_at=utcnow(),
                    lease_expires_at=None,
                )
                .execution_options(synchronize_session=False)
            )
            session.commit()

        if result.rowcount != 1:
            logger.warning(
                f"{worker_id} no longer holds task {task_id}; "
                f"dropping {status.value} result"
            )
            return False
        logger.info(f"Task {task_id} {status.value}")
        return True

    # -- queries -----------------------------------------------------------

    def get(self, task_id: str) -> Optional[ApplicationTask]:
        with self._session_factory() as session:
            record = session.scalars(
                select(TaskRecord).where(TaskRecord.id == task_id)
            ).first()
            return self._to_task(record) if record else None

    def list_batch(self, batch_id: str) -> list[ApplicationTask]:
        """All tasks of a batch, in submission order."""
        with self._session_factory() as session:
            records = session.scalars(
                select(TaskRecord)
                .where(TaskRecord.batch_id == batch_id)
                .order_by(TaskRecord.seq)
            ).all()
            return [self._to_task(r) for r in records]

    def stats(self) -> dict[str, int]:
        """Get queue statistics."""
        with self._session_factory() as session:
            rows = session.execute(
                select(TaskRecord.status, func.count()).group_by(TaskRecord.status)
            ).all()
        counts = {status.value: 0 for status in TaskStatus}
        for status, count in rows:
            counts[status] = count
        counts["total"] = sum(counts[s.value] for s in TaskStatus)
        return counts

    def _to_task(self, record: TaskRecord) -> ApplicationTask:
        resume = None
        if record.resume is not None:
            resume = ResumeAttachment(
                filename=record.resume.filename,
                content=record.resume.content,
                mime_type=record.resume.mime_type,
            )
        return ApplicationTask(
            id=record.id,
            job_redirect_url=record.job_redirect_url,
            job_title=record.job_title,
            company=record.company,
            applicant_fields=dict(record.applicant_fields or {}),
            resume_attachment=resume,
            is_batch_member=record.is_batch_member,
            batch_id=record.batch_id,
            status=TaskStatus(record.status),
            result=record.result,
            attempts=record.attempts,
            lease_owner=record.lease_owner,
            created_at=record.created_at,
            started_at=record.started_at,
            finished_at=record.finished_at,
        )
