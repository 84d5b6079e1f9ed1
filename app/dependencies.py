from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.cache import CacheManager, get_cache
from app.database import get_db
from app.repositories.transaction_store import TransactionStore
from app.services.transaction_service import TransactionService


def get_transaction_store(db: AsyncSession = Depends(get_db)) -> TransactionStore:
    """Store bound to the request's session."""
    return TransactionStore(db)


def get_transaction_service(
    store: TransactionStore = Depends(get_transaction_store),
    cache: CacheManager = Depends(get_cache),
) -> TransactionService:
    """
    Reusable FastAPI dependency that wires a per-request
    ``TransactionService`` to the store and the shared cache.

    Tests override ``get_cache`` (or this dependency) to inject doubles.
    """
    return TransactionService(store, cache)
