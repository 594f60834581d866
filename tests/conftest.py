"""
Shared fixtures: a storage seeded with the demo data set
"""

import pytest
import pytest_asyncio
from unittest.mock import MagicMock
import logging

from retail_banking.async_storage import AsyncInMemoryStorage
from retail_banking.mapping import Mapper
from retail_banking.models import Account, Customer
from retail_banking.repository import UnitOfWork
from retail_banking.seed import seed_demo_data


@pytest_asyncio.fixture
async def storage():
    """In-memory storage holding the demo customers, accounts and rates"""
    storage = AsyncInMemoryStorage()
    await seed_demo_data(storage)
    return storage


@pytest.fixture
def mapper():
    return Mapper()


@pytest.fixture
def logger():
    return MagicMock(spec=logging.Logger)


@pytest.fixture
def load_account(storage):
    """Read an account straight from the store, bypassing any open unit of work"""
    async def load(account_number: str) -> Account:
        return await UnitOfWork(storage).get_repository(Account).first(
            lambda a: a.account_number == account_number
        )
    return load


@pytest.fixture
def load_customer(storage):
    async def load(first_name: str) -> Customer:
        return await UnitOfWork(storage).get_repository(Customer).first(
            lambda c: c.first_name == first_name
        )
    return load
