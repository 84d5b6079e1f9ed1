from fastapi import APIRouter, Depends

from app.cache import CacheManager, get_cache
from app.dependencies import get_transaction_store
from app.repositories.transaction_store import TransactionStore
from app.schemas import MetricsResponse

router = APIRouter(prefix="/api/v1/metrics", tags=["metrics"])

@router.get("", response_model=MetricsResponse)
async def get_metrics(
    store: TransactionStore = Depends(get_transaction_store),
    cache: CacheManager = Depends(get_cache),
):
    return MetricsResponse(
        total_transactions=await store.count(),
        cache_info={**cache.stats, "connected": cache.connected},
    )
