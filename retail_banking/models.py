"""
Domain Model Module

Customers, accounts, account types and loan rate bands as stored records.
Every entity knows its table name and how to round-trip itself through the
JSON documents kept by the storage backends.
"""

from decimal import Decimal
from datetime import datetime
from dataclasses import dataclass, field, fields
from enum import IntEnum
from typing import Any, ClassVar, Dict, Optional, Tuple, Union, get_args, get_origin, get_type_hints
import uuid


class AccountTypeId(IntEnum):
    """Reserved account type ids; LOAN marks loan accounts"""
    CURRENT = 1
    SAVINGS = 2
    LOAN = 3


def navigation(**kwargs) -> Any:
    """Declare a related-entity attribute filled by eager loading, never stored"""
    return field(default=None, repr=False, compare=False, metadata={"navigation": True}, **kwargs)


def _coerce(value: Any, hint: Any) -> Any:
    """Convert a stored JSON value back to the annotated Python type"""
    if value is None:
        return None

    if get_origin(hint) is Union:
        candidates = [arg for arg in get_args(hint) if arg is not type(None)]
        hint = candidates[0] if len(candidates) == 1 else Any

    if hint is Decimal and not isinstance(value, Decimal):
        return Decimal(str(value))
    if hint is uuid.UUID and not isinstance(value, uuid.UUID):
        return uuid.UUID(str(value))
    if hint is datetime and isinstance(value, str):
        return datetime.fromisoformat(value)
    if hint is int and not isinstance(value, int):
        return int(value)
    return value


@dataclass
class BaseEntity:
    """Base class for all stored records"""
    table: ClassVar[str] = ""
    relations: ClassVar[Dict[str, Tuple[type, str]]] = {}

    id: Optional[int] = None
    created_date: Optional[datetime] = None
    created_by: str = ""
    modified_date: Optional[datetime] = None
    modified_by: Optional[str] = None

    @property
    def record_id(self) -> str:
        """Storage key of the record"""
        return str(self.id)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage"""
        result = {}
        for f in fields(self):
            if f.metadata.get("navigation"):
                continue
            value = getattr(self, f.name)
            if isinstance(value, (Decimal, uuid.UUID)):
                value = str(value)
            elif isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, IntEnum):
                value = int(value)
            result[f.name] = value
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BaseEntity':
        """Create instance from dictionary"""
        hints = get_type_hints(cls)
        kwargs = {}
        for f in fields(cls):
            if f.metadata.get("navigation") or f.name not in data:
                continue
            kwargs[f.name] = _coerce(data[f.name], hints.get(f.name, Any))
        return cls(**kwargs)


@dataclass
class Customer(BaseEntity):
    """Bank customer; authenticated by first name in the demo"""
    table: ClassVar[str] = "customers"

    first_name: str = ""
    last_name: str = ""
    credit_score: int = 0
    customer_number: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self):
        if not 0 <= self.credit_score <= 100:
            raise ValueError(f"Credit score must be between 0 and 100, got {self.credit_score}")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass
class AccountType(BaseEntity):
    """Reference data: Current, Savings or Loan"""
    table: ClassVar[str] = "account_types"

    name: str = ""


@dataclass
class Account(BaseEntity):
    """
    Customer account.

    ``account_id`` is the external identifier used by callers;
    ``account_number`` is cosmetic and not guaranteed unique. The balance has
    no floor and may go negative.
    """
    table: ClassVar[str] = "accounts"

    customer_id: Optional[int] = None
    account_id: uuid.UUID = field(default_factory=uuid.uuid4)
    account_number: str = ""
    balance: Decimal = Decimal('0')
    account_type_id: int = AccountTypeId.CURRENT

    customer: Optional[Customer] = navigation()
    account_type: Optional[AccountType] = navigation()

    def __post_init__(self):
        if not isinstance(self.balance, Decimal):
            self.balance = Decimal(str(self.balance))

    @property
    def is_loan(self) -> bool:
        return self.account_type_id == AccountTypeId.LOAN


@dataclass
class LoanRate(BaseEntity):
    """
    Loan rate band.

    Applies to customers whose credit score lies in the half-open
    interval [rating_from, rating_to) for loans of ``duration`` years.
    """
    table: ClassVar[str] = "loan_rates"

    rating_from: int = 0
    rating_to: int = 0
    duration: int = 0
    rate: int = 0

    def covers(self, credit_score: int) -> bool:
        """Check if a credit score falls inside this band"""
        return self.rating_from <= credit_score < self.rating_to


# Navigation name -> (related entity, foreign key on this entity)
Account.relations = {
    "customer": (Customer, "customer_id"),
    "account_type": (AccountType, "account_type_id"),
}
