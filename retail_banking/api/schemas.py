"""
Pydantic schemas for API requests
"""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Customer first name")


class TransferRequest(BaseModel):
    target_account_id: UUID
    amount: Decimal = Field(..., gt=0)


class LoanQuoteRequest(BaseModel):
    duration: int = Field(..., gt=0, description="Loan duration in years")


class LoanRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)
    duration: int = Field(..., gt=0, description="Loan duration in years")
    account_id: UUID = Field(..., description="Account receiving the loan funds")
