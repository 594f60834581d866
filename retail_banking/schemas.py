"""
Pydantic data transfer objects returned by the service layer
"""

from decimal import Decimal
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .models import AccountTypeId


class AccountTypeDto(BaseModel):
    name: str = ""


class AccountDto(BaseModel):
    customer_id: Optional[int] = None
    balance: Decimal = Decimal('0')
    account_type_id: int
    account_id: UUID
    account_number: str
    account_type: Optional[AccountTypeDto] = None
    created_date: Optional[datetime] = None
    modified_date: Optional[datetime] = None

    @property
    def is_loan(self) -> bool:
        return self.account_type_id == AccountTypeId.LOAN


class CustomerDto(BaseModel):
    first_name: str = ""
    last_name: str = ""
    credit_score: int = Field(0, ge=0, le=100)
    customer_number: UUID
    accounts: List[AccountDto] = Field(default_factory=list)


class LoanRateDto(BaseModel):
    rating_from: int
    rating_to: int
    duration: int
    rate: int
