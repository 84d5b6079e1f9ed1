"""
Transaction service — cache-aside coordinator for one owner's transactions.

Design notes
------------
- Two derived views are cached per owner: the full transaction list and
  the income/expense summary.  Reads check Redis first and fall back to
  the store on a miss; the store result is then written back with a TTL.
- Writes go to the store first.  Only after the store has committed are
  both views for the owner deleted (one ``DEL`` for both keys).  Cached
  views are never patched in place, so list and summary cannot drift
  apart.
- The cache is an optimisation only.  ``CacheManager`` reports failures
  and timeouts as soft outcomes (None / False); they are logged here and
  never reach the caller.  Store failures always propagate as
  ``StoreUnavailableError``.
- Store write and cache invalidation are two independent steps.  If the
  process dies between them, readers may see the previous views until the
  TTL expires.  That window is accepted.
- The summary is a pure fold over every transaction the owner has; there
  is no running total anywhere and no calendar-month filter.
"""
import logging
from decimal import Decimal
from typing import Any, Iterable, Mapping

from pydantic import BaseModel, ValidationError

from app.cache import CacheManager
from app.config import settings
from app.errors import TransactionNotFoundError, TransactionValidationError
from app.models import OWNER_MAX_LENGTH, Transaction
from app.repositories.transaction_store import TransactionStore
from app.schemas import (
    SummaryResponse,
    TransactionCreate,
    TransactionResponse,
    TransactionUpdate,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Cache keys
# ---------------------------------------------------------------------------

def list_cache_key(owner: str) -> str:
    return f"transactions:list:{owner}"


def summary_cache_key(owner: str) -> str:
    return f"transactions:summary:{owner}"


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def compute_summary(transactions: Iterable[Transaction]) -> SummaryResponse:
    """Fold *transactions* into total income, total expense and net balance."""
    total_income = Decimal("0")
    total_expense = Decimal("0")
    for t in transactions:
        if t.type == "income":
            total_income += t.amount
        elif t.type == "expense":
            total_expense += t.amount
    return SummaryResponse(
        total_income=total_income,
        total_expense=total_expense,
        net_balance=total_income - total_expense,
    )


def _transaction_to_dict(transaction: Transaction) -> dict:
    """Serialise a Transaction to the JSON-ready dict that is also cached."""
    return TransactionResponse.model_validate(transaction).model_dump(mode="json")


def _validate(model: type[BaseModel], data: BaseModel | Mapping[str, Any]) -> BaseModel:
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        details = [
            {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
            for err in exc.errors()
        ]
        raise TransactionValidationError("Invalid transaction payload", details) from exc


def _require_owner(owner: str) -> str:
    if not owner or not owner.strip():
        raise TransactionValidationError("Owner identity is required")
    if len(owner) > OWNER_MAX_LENGTH:
        raise TransactionValidationError(
            f"Owner identity longer than {OWNER_MAX_LENGTH} characters"
        )
    return owner


# ---------------------------------------------------------------------------
# Coordinator
# ---------------------------------------------------------------------------

class TransactionService:
    """
    Mediates every read and write of an owner's transactions between the
    store and the cache.  One instance per request is the norm; the only
    thing it remembers is ``cache_status``, the outcome of its last cached
    read ("hit" or "miss", "bypass" before any read).
    """

    def __init__(
        self,
        store: TransactionStore,
        cache: CacheManager,
        list_ttl: int | None = None,
        summary_ttl: int | None = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self.list_ttl = list_ttl if list_ttl is not None else settings.CACHE_TTL_LIST
        self.summary_ttl = summary_ttl if summary_ttl is not None else settings.CACHE_TTL_SUMMARY
        self.cache_status = "bypass"

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    async def list_transactions(self, owner: str) -> list[dict]:
        """
        Return *owner*'s transactions, newest first.

        Served from the cache when present; otherwise loaded from the
        store and written back.  An empty list is a valid cached value.
        """
        _require_owner(owner)
        key = list_cache_key(owner)
        cached = await self.cache.get(key)
        if isinstance(cached, list):
            logger.debug("Transaction list served from cache for owner=%s", owner)
            self.cache_status = "hit"
            return cached

        self.cache_status = "miss"
        transactions = await self.store.find_by_owner(owner)
        items = [_transaction_to_dict(t) for t in transactions]
        if await self.cache.set(key, items, ttl=self.list_ttl):
            logger.debug("Transaction list cached for owner=%s (%d items)", owner, len(items))
        else:
            logger.info("Transaction list for owner=%s not cached; cache unavailable", owner)
        return items

    async def get_summary(self, owner: str) -> dict:
        """
        Return ``{total_income, total_expense, net_balance}`` for *owner*.

        A miss recomputes the totals from the full transaction set.
        """
        _require_owner(owner)
        key = summary_cache_key(owner)
        cached = await self.cache.get(key)
        if isinstance(cached, dict):
            logger.debug("Summary served from cache for owner=%s", owner)
            self.cache_status = "hit"
            return cached

        self.cache_status = "miss"
        transactions = await self.store.find_by_owner(owner)
        summary = compute_summary(transactions).model_dump(mode="json")
        if await self.cache.set(key, summary, ttl=self.summary_ttl):
            logger.debug("Summary cached for owner=%s", owner)
        else:
            logger.info("Summary for owner=%s not cached; cache unavailable", owner)
        return summary

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    async def _invalidate(self, owner: str) -> None:
        """Drop both cached views for *owner*; failure is logged, not raised."""
        if not await self.cache.delete(list_cache_key(owner), summary_cache_key(owner)):
            logger.warning(
                "Cache invalidation failed for owner=%s; stale views possible until TTL",
                owner,
            )

    async def create_transaction(
        self, owner: str, data: TransactionCreate | Mapping[str, Any]
    ) -> dict:
        """Persist a new transaction for *owner* and return it with its id."""
        _require_owner(owner)
        payload = _validate(TransactionCreate, data)
        transaction = await self.store.insert(owner, payload.model_dump())
        logger.info("Created transaction id=%s for owner=%s", transaction.id, owner)
        await self._invalidate(owner)
        return _transaction_to_dict(transaction)

    async def update_transaction(
        self,
        owner: str,
        transaction_id: int,
        data: TransactionUpdate | Mapping[str, Any],
    ) -> dict:
        """
        Apply the fields present in *data* to one of *owner*'s transactions.

        Raises ``TransactionNotFoundError`` when the id does not exist or
        belongs to someone else; nothing is written or invalidated then.
        """
        _require_owner(owner)
        payload = _validate(TransactionUpdate, data)
        transaction = await self.store.update_by_id_and_owner(
            transaction_id, owner, payload.model_dump(exclude_unset=True)
        )
        if transaction is None:
            raise TransactionNotFoundError(transaction_id)
        logger.info("Updated transaction id=%s for owner=%s", transaction_id, owner)
        await self._invalidate(owner)
        return _transaction_to_dict(transaction)

    async def delete_transaction(self, owner: str, transaction_id: int) -> dict:
        """Delete one of *owner*'s transactions and return the removed record."""
        _require_owner(owner)
        transaction = await self.store.delete_by_id_and_owner(transaction_id, owner)
        if transaction is None:
            raise TransactionNotFoundError(transaction_id)
        logger.info("Deleted transaction id=%s for owner=%s", transaction_id, owner)
        await self._invalidate(owner)
        return _transaction_to_dict(transaction)
