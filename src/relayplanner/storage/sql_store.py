"""SQLAlchemy-backed schedule store (the remote database)."""

import logging
from collections import Counter
from datetime import datetime
from typing import Optional, Sequence, Union

import sqlalchemy as sa
import sqlalchemy.exc as sa_exception
import sqlalchemy.orm as sa_orm
from sqlalchemy.orm import Mapped, mapped_column

from relayplanner.domain.models import ScheduleEntry
from relayplanner.storage.base import (
    RepositoryError,
    SaveResult,
    ScheduleRepository,
    StoreKind,
)

logger = logging.getLogger(__name__)

Base = sa_orm.declarative_base()


class DriverScheduleOrm(Base):
    __tablename__ = "driver_schedule"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "job_id", name="uq_driver_schedule_user_job"),
    )

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(sa.String, index=True)
    job_id: Mapped[str] = mapped_column(sa.String)
    start_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True))
    end_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True))
    note: Mapped[Optional[str]] = mapped_column(sa.String, nullable=True)

    def to_entry(self) -> ScheduleEntry:
        return ScheduleEntry(
            job_id=self.job_id,
            start_at=self.start_at,
            end_at=self.end_at,
            note=self.note,
        )


class SqlScheduleRepository(ScheduleRepository):
    """Stores entries in the driver_schedule table, one row per (user, job).

    Example:
        >>> repo = SqlScheduleRepository("sqlite:///planner.db")
        >>> repo.create_schema()
        >>> repo.save("driver-1", entries)
    """

    def __init__(self, engine: Union[str, sa.Engine]):
        if isinstance(engine, str):
            try:
                engine = sa.create_engine(engine)
            except (sa_exception.ArgumentError, ImportError) as exc:
                raise RepositoryError(f"Invalid database URL {engine!r}: {exc}") from exc
        self.engine = engine
        self.session_factory = sa_orm.sessionmaker(bind=engine)

    def create_schema(self) -> None:
        """Create the driver_schedule table if it does not exist."""
        try:
            Base.metadata.create_all(self.engine)
        except sa_exception.SQLAlchemyError as exc:
            raise RepositoryError(f"Could not create schedule table: {exc}") from exc

    def load(self, owner_id: str) -> list[ScheduleEntry]:
        session = self.session_factory()
        try:
            rows = (
                session.query(DriverScheduleOrm)
                .filter(DriverScheduleOrm.user_id == owner_id)
                .order_by(DriverScheduleOrm.start_at)
                .all()
            )
            return [row.to_entry() for row in rows]
        except sa_exception.SQLAlchemyError as exc:
            raise RepositoryError(f"Could not load schedule for {owner_id}: {exc}") from exc
        finally:
            session.close()

    def save(self, owner_id: str, entries: Sequence[ScheduleEntry]) -> SaveResult:
        """Upsert entries by (user_id, job_id) and drop rows for removed jobs.

        Raises:
            RepositoryError: If the store cannot be written, or the list holds
                more than one entry for a job (the table keeps one per job).
        """
        duplicates = sorted(
            job_id for job_id, count in Counter(e.job_id for e in entries).items() if count > 1
        )
        if duplicates:
            raise RepositoryError(
                f"Cannot store more than one entry per job: {', '.join(duplicates)}"
            )
        latest = {e.job_id: e for e in entries}
        session = self.session_factory()
        try:
            rows = {
                row.job_id: row
                for row in session.query(DriverScheduleOrm)
                .filter(DriverScheduleOrm.user_id == owner_id)
                .all()
            }
            for job_id, row in rows.items():
                if job_id not in latest:
                    session.delete(row)
            for job_id, entry in latest.items():
                row = rows.get(job_id)
                if row is None:
                    row = DriverScheduleOrm(user_id=owner_id, job_id=job_id)
                    session.add(row)
                row.start_at = entry.start_at
                row.end_at = entry.end_at
                row.note = entry.note
            session.commit()
        except sa_exception.SQLAlchemyError as exc:
            session.rollback()
            raise RepositoryError(f"Could not save schedule for {owner_id}: {exc}") from exc
        finally:
            session.close()

        logger.debug("Saved %d entries for %s to database", len(latest), owner_id)
        return SaveResult(store=StoreKind.CLOUD, entry_count=len(latest))
