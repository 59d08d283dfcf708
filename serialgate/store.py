import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from fastapi import Request
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .models import SerialCode, rfc3339

log = logging.getLogger(__name__)


class StorageError(Exception):
    pass


@dataclass(frozen=True)
class Redemption:
    valid: bool
    message: str


def _rejection(row: SerialCode, now: datetime) -> Optional[Redemption]:
    if now >= row.expires_at:
        return Redemption(False, f"Code expired at {rfc3339(row.expires_at)}")
    if row.uses_count >= row.max_uses:
        return Redemption(False, f"Code has reached its maximum usage limit of {row.max_uses}")
    return None


class SerialStore:
    """Query/command interface over the serial_codes table.

    Every call opens and closes its own session, so a store can be shared by
    handlers running concurrently in the thread pool.
    """

    def __init__(self, session_factory: sessionmaker):
        self.SessionLocal = session_factory

    def create(self, code: str, created_at: datetime, expires_at: datetime, max_uses: int) -> SerialCode:
        db = self.SessionLocal()
        try:
            row = SerialCode(
                code=code,
                created_at=created_at,
                expires_at=expires_at,
                max_uses=max_uses,
                uses_count=0,
            )
            db.add(row)
            db.commit()
            return row
        except (SQLAlchemyError, OverflowError) as e:
            db.rollback()
            raise StorageError(f"Could not create serial code: {e}") from e
        finally:
            db.close()

    def redeem(self, code: str, now: datetime) -> Redemption:
        """Check a code and consume one use if it is still valid.

        The increment is a single UPDATE guarded by the same validity
        predicate as the check, so concurrent redemptions of one code can
        never push uses_count past max_uses. A guard that matches no row
        means another redemption won; the row is re-read and reported.
        """
        db = self.SessionLocal()
        try:
            row = db.execute(select(SerialCode).where(SerialCode.code == code)).scalar_one_or_none()
            if row is None:
                return Redemption(False, "Code not found")

            rejected = _rejection(row, now)
            if rejected:
                return rejected

            result = db.execute(
                update(SerialCode)
                .where(
                    SerialCode.code == code,
                    SerialCode.expires_at > now,
                    SerialCode.uses_count < SerialCode.max_uses,
                )
                .values(uses_count=SerialCode.uses_count + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                db.rollback()
                log.debug("lost redemption race for code=%s", code)
                db.refresh(row)
                return _rejection(row, now) or Redemption(
                    False, f"Code has reached its maximum usage limit of {row.max_uses}"
                )

            db.commit()
            return Redemption(True, "Code is valid")
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(f"Database error: {e}") from e
        finally:
            db.close()

    def list_codes(self, now: datetime, active_only: bool = True) -> List[SerialCode]:
        db = self.SessionLocal()
        try:
            q = select(SerialCode)
            if active_only:
                q = q.where(SerialCode.expires_at > now, SerialCode.uses_count < SerialCode.max_uses)
            return list(db.execute(q.order_by(SerialCode.id.desc())).scalars().all())
        except SQLAlchemyError as e:
            raise StorageError(f"Database query error: {e}") from e
        finally:
            db.close()


def get_store(request: Request) -> SerialStore:
    return request.app.state.store
