"""
Transaction store — the source of truth for the Transaction table.

Every query is scoped by owner where the operation allows it, so an id
belonging to another owner is indistinguishable from one that does not
exist.  Mutations commit before returning: once a call returns, the write
is durable and the caller may invalidate derived views.

Database failures are rolled back and re-raised as
``StoreUnavailableError``; "not found" is returned as None.
"""
import logging
from typing import Any

from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import StoreUnavailableError
from app.models import Transaction

logger = logging.getLogger(__name__)

# Columns a caller may write; ``user_id`` and ``id`` are never taken from input.
_WRITABLE_COLUMNS: frozenset[str] = frozenset(
    {"type", "amount", "category", "description", "date"}
)


class TransactionStore:
    """SQLAlchemy-backed store bound to one request's session."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def _fail(self, operation: str, exc: SQLAlchemyError) -> StoreUnavailableError:
        logger.error("Store %s failed: %s", operation, exc, exc_info=exc)
        try:
            await self._db.rollback()
        except SQLAlchemyError:
            logger.debug("Rollback after failed %s also failed", operation)
        return StoreUnavailableError(operation)

    async def find_by_owner(self, owner: str) -> list[Transaction]:
        """Return *owner*'s transactions, most recent ``date`` first."""
        q = (
            select(Transaction)
            .where(Transaction.user_id == owner)
            .order_by(desc(Transaction.date), desc(Transaction.id))
        )
        try:
            result = await self._db.execute(q)
        except SQLAlchemyError as exc:
            raise await self._fail("find_by_owner", exc) from exc
        return list(result.scalars().all())

    async def _get_owned(self, transaction_id: int, owner: str) -> Transaction | None:
        q = select(Transaction).where(
            Transaction.id == transaction_id, Transaction.user_id == owner
        )
        result = await self._db.execute(q)
        return result.scalar_one_or_none()

    async def insert(self, owner: str, fields: dict[str, Any]) -> Transaction:
        """Persist a new transaction owned by *owner*."""
        values = {k: v for k, v in fields.items() if k in _WRITABLE_COLUMNS}
        if values.get("date") is None:
            values.pop("date", None)  # column default applies
        transaction = Transaction(user_id=owner, updated_at=None, **values)
        try:
            self._db.add(transaction)
            await self._db.commit()
            # Reload so the returned row renders exactly as later reads will.
            await self._db.refresh(transaction)
        except SQLAlchemyError as exc:
            raise await self._fail("insert", exc) from exc
        return transaction

    async def update_by_id_and_owner(
        self, transaction_id: int, owner: str, fields: dict[str, Any]
    ) -> Transaction | None:
        """
        Apply *fields* to the transaction if *owner* owns it.

        Returns the updated row, or None when no such row exists for
        this owner (nothing is written in that case).
        """
        try:
            transaction = await self._get_owned(transaction_id, owner)
            if transaction is None:
                return None
            for field, value in fields.items():
                if field in _WRITABLE_COLUMNS:
                    setattr(transaction, field, value)
            await self._db.commit()
            await self._db.refresh(transaction)
        except SQLAlchemyError as exc:
            raise await self._fail("update", exc) from exc
        return transaction

    async def delete_by_id_and_owner(
        self, transaction_id: int, owner: str
    ) -> Transaction | None:
        """Delete the transaction if *owner* owns it; return the removed row or None."""
        try:
            transaction = await self._get_owned(transaction_id, owner)
            if transaction is None:
                return None
            await self._db.delete(transaction)
            await self._db.commit()
        except SQLAlchemyError as exc:
            raise await self._fail("delete", exc) from exc
        return transaction

    async def count(self) -> int:
        try:
            result = await self._db.execute(select(func.count()).select_from(Transaction))
        except SQLAlchemyError as exc:
            raise await self._fail("count", exc) from exc
        return result.scalar_one()
