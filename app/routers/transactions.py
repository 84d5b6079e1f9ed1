from fastapi import APIRouter, Depends

from app.auth import get_current_owner
from app.dependencies import get_transaction_service
from app.middleware import record_cache_status
from app.schemas import (
    DeleteResponse,
    SummaryResponse,
    TransactionCreate,
    TransactionResponse,
    TransactionUpdate,
)
from app.services.transaction_service import TransactionService

router = APIRouter(prefix="/api/v1/transactions", tags=["transactions"])

@router.get("", response_model=list[TransactionResponse])
async def list_transactions(
    owner: str = Depends(get_current_owner),
    service: TransactionService = Depends(get_transaction_service),
):
    items = await service.list_transactions(owner)
    record_cache_status(service.cache_status)
    return items

@router.get("/summary", response_model=SummaryResponse)
async def get_summary(
    owner: str = Depends(get_current_owner),
    service: TransactionService = Depends(get_transaction_service),
):
    summary = await service.get_summary(owner)
    record_cache_status(service.cache_status)
    return summary

@router.post("", status_code=201, response_model=TransactionResponse)
async def create_transaction(
    data: TransactionCreate,
    owner: str = Depends(get_current_owner),
    service: TransactionService = Depends(get_transaction_service),
):
    return await service.create_transaction(owner, data)

@router.put("/{transaction_id}", response_model=TransactionResponse)
async def update_transaction(
    transaction_id: int,
    data: TransactionUpdate,
    owner: str = Depends(get_current_owner),
    service: TransactionService = Depends(get_transaction_service),
):
    return await service.update_transaction(owner, transaction_id, data)

@router.delete("/{transaction_id}", response_model=DeleteResponse)
async def delete_transaction(
    transaction_id: int,
    owner: str = Depends(get_current_owner),
    service: TransactionService = Depends(get_transaction_service),
):
    deleted = await service.delete_transaction(owner, transaction_id)
    return DeleteResponse(message="Transaction deleted", id=deleted["id"])
