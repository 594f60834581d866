"""
Demo Data Module

Seeds the demo customers, accounts, account types and loan rate bands.
Tables that already hold records are left untouched, so seeding is safe to
run at every startup.
"""

from decimal import Decimal
import logging

from .async_storage import AsyncStorageInterface
from .models import Account, AccountType, AccountTypeId, Customer, LoanRate
from .repository import UnitOfWork

logger = logging.getLogger("retail_banking.seed")

DEMO_CUSTOMERS = [
    ("Bob", "Smith", 15),
    ("Jim", "Jones", 45),
    ("Anne", "Murphy", 80),
]

# (first name of owner, account type, balance, account number)
DEMO_ACCOUNTS = [
    ("Bob", AccountTypeId.CURRENT, "564034.04", "80786774"),
    ("Bob", AccountTypeId.SAVINGS, "23045.55", "32454687"),
    ("Jim", AccountTypeId.CURRENT, "8006.52", "80453366"),
    ("Jim", AccountTypeId.SAVINGS, "809223.25", "22554678"),
    ("Anne", AccountTypeId.CURRENT, "1234887.33", "90045663"),
    ("Anne", AccountTypeId.SAVINGS, "44211.18", "45456787"),
]

# (rating from, rating to, duration in years, rate)
DEMO_LOAN_RATES = [
    (20, 50, 1, 20),
    (20, 50, 3, 15),
    (20, 50, 5, 10),
    (50, 101, 1, 12),
    (50, 101, 3, 8),
    (50, 101, 5, 5),
]


async def seed_demo_data(storage: AsyncStorageInterface) -> int:
    """
    Populate empty tables with the demo data set.

    Returns:
        Number of records written
    """
    unit_of_work = UnitOfWork(storage, user="System")
    written = 0

    account_types = unit_of_work.get_repository(AccountType)
    if await account_types.count() == 0:
        await account_types.add_range(
            AccountType(id=int(type_id), name=type_id.name.title())
            for type_id in AccountTypeId
        )

    customers = unit_of_work.get_repository(Customer)
    if await customers.count() == 0:
        await customers.add_range(
            Customer(first_name=first, last_name=last, credit_score=score)
            for first, last, score in DEMO_CUSTOMERS
        )
        # Accounts need customer ids
        written += await unit_of_work.save_changes()

    accounts = unit_of_work.get_repository(Account)
    if await accounts.count() == 0:
        owners = {customer.first_name: customer for customer in await customers.get_all()}
        for first_name, type_id, balance, account_number in DEMO_ACCOUNTS:
            owner = owners.get(first_name)
            if owner is None:
                continue
            await accounts.add(Account(
                customer_id=owner.id,
                account_number=account_number,
                balance=Decimal(balance),
                account_type_id=type_id
            ))

    loan_rates = unit_of_work.get_repository(LoanRate)
    if await loan_rates.count() == 0:
        await loan_rates.add_range(
            LoanRate(rating_from=low, rating_to=high, duration=duration, rate=rate)
            for low, high, duration, rate in DEMO_LOAN_RATES
        )

    written += await unit_of_work.save_changes()
    if written:
        logger.info("Seeded %d demo records", written)
    return written
