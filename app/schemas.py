from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

TransactionType = Literal["income", "expense"]

Amount = Annotated[Decimal, Field(ge=0, max_digits=12, decimal_places=2)]


# --- Transaction ---

class TransactionBase(BaseModel):
    type: TransactionType
    amount: Amount
    category: str | None = Field(None, max_length=100)
    description: str | None = None


class TransactionCreate(TransactionBase):
    date: datetime | None = None  # defaults to "now" in the store


class TransactionUpdate(BaseModel):
    type: TransactionType | None = None
    amount: Amount | None = None
    category: str | None = Field(None, max_length=100)
    description: str | None = None
    date: datetime | None = None

    @model_validator(mode="after")
    def _required_columns_not_cleared(self) -> "TransactionUpdate":
        # Omitting a field leaves it untouched; sending null for one of the
        # non-nullable columns is an error rather than a silent no-op.
        cleared = [
            name
            for name in ("type", "amount", "date")
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if cleared:
            raise ValueError(f"fields cannot be null: {', '.join(cleared)}")
        return self


class TransactionResponse(BaseModel):
    id: int
    user_id: str
    type: TransactionType
    amount: Decimal
    category: str | None = None
    description: str | None = None
    date: datetime
    created_at: datetime
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class DeleteResponse(BaseModel):
    message: str
    id: int


# --- Summary ---

class SummaryResponse(BaseModel):
    total_income: Decimal
    total_expense: Decimal
    net_balance: Decimal


# --- Metrics ---

class MetricsResponse(BaseModel):
    total_transactions: int
    cache_info: dict = {}
