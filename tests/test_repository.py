"""
Tests for repositories and the unit of work
"""

import pytest
import pytest_asyncio
from decimal import Decimal

from retail_banking.async_storage import AsyncInMemoryStorage
from retail_banking.models import Account, AccountType, AccountTypeId, Customer
from retail_banking.repository import Repository, UnitOfWork


class FailingStorage(AsyncInMemoryStorage):
    """In-memory storage whose Nth save raises"""

    def __init__(self, fail_on_save: int):
        super().__init__()
        self.fail_on_save = fail_on_save
        self.saves = 0

    async def save(self, table, record_id, data):
        self.saves += 1
        if self.saves == self.fail_on_save:
            raise IOError("Disk full")
        await super().save(table, record_id, data)


class TestRepository:
    """Test predicate queries and staging"""

    @pytest_asyncio.fixture
    async def storage(self):
        storage = AsyncInMemoryStorage()
        await storage.save("account_types", "1", AccountType(id=1, name="Current").to_dict())
        await storage.save("account_types", "3", AccountType(id=3, name="Loan").to_dict())
        await storage.save("customers", "1", Customer(id=1, first_name="Bob", credit_score=15).to_dict())
        await storage.save("customers", "2", Customer(id=2, first_name="Jim", credit_score=45).to_dict())
        await storage.save("accounts", "1", Account(id=1, customer_id=1, balance=Decimal("10")).to_dict())
        await storage.save("accounts", "2", Account(id=2, customer_id=2, balance=Decimal("20")).to_dict())
        await storage.save("accounts", "3", Account(
            id=3, customer_id=2, balance=Decimal("30"), account_type_id=AccountTypeId.LOAN
        ).to_dict())
        return storage

    @pytest.mark.asyncio
    async def test_get_all_in_store_order(self, storage):
        accounts = await UnitOfWork(storage).get_repository(Account).get_all()
        assert [a.id for a in accounts] == [1, 2, 3]
        assert accounts[2].balance == Decimal("30")

    @pytest.mark.asyncio
    async def test_get_by_id(self, storage):
        repository = UnitOfWork(storage).get_repository(Customer)
        assert (await repository.get_by_id(2)).first_name == "Jim"
        assert await repository.get_by_id(99) is None

    @pytest.mark.asyncio
    async def test_find_and_first(self, storage):
        repository = UnitOfWork(storage).get_repository(Account)

        jims = await repository.find(lambda a: a.customer_id == 2)
        assert [a.id for a in jims] == [2, 3]

        assert (await repository.first(lambda a: a.balance > Decimal("15"))).id == 2
        assert await repository.first(lambda a: a.balance > Decimal("100")) is None

    @pytest.mark.asyncio
    async def test_count(self, storage):
        repository = UnitOfWork(storage).get_repository(Account)
        assert await repository.count() == 3
        assert await repository.count(lambda a: a.is_loan) == 1

    @pytest.mark.asyncio
    async def test_include_loads_navigation_properties(self, storage):
        """Predicates may navigate through included relations"""
        repository = UnitOfWork(storage).get_repository(Account)

        accounts = await repository.find(
            lambda a: a.customer.first_name == "Jim",
            include=("customer", "account_type")
        )

        assert [a.id for a in accounts] == [2, 3]
        assert accounts[0].account_type.name == "Current"
        assert accounts[1].account_type.name == "Loan"

    @pytest.mark.asyncio
    async def test_include_unknown_relation(self, storage):
        repository = UnitOfWork(storage).get_repository(Account)
        with pytest.raises(ValueError, match="no relation"):
            await repository.get_all(include=("owner",))

    @pytest.mark.asyncio
    async def test_add_rejects_wrong_type(self, storage):
        repository = UnitOfWork(storage).get_repository(Account)
        with pytest.raises(TypeError):
            await repository.add(Customer(first_name="Anne"))


class TestUnitOfWork:
    """Test identity map, change tracking and atomic commit"""

    @pytest_asyncio.fixture
    async def storage(self):
        storage = AsyncInMemoryStorage()
        await storage.save("accounts", "1", Account(id=1, customer_id=1, balance=Decimal("100")).to_dict())
        await storage.save("accounts", "2", Account(id=2, customer_id=1, balance=Decimal("50")).to_dict())
        return storage

    def test_requires_storage(self):
        with pytest.raises(ValueError):
            UnitOfWork(None)

    def test_repository_cached(self):
        unit_of_work = UnitOfWork(AsyncInMemoryStorage())
        repository = unit_of_work.get_repository(Account)
        assert isinstance(repository, Repository)
        assert unit_of_work.get_repository(Account) is repository

    @pytest.mark.asyncio
    async def test_identity_map(self, storage):
        """Loading the same record twice yields the same object"""
        repository = UnitOfWork(storage).get_repository(Account)

        first = await repository.get_by_id(1)
        again = await repository.first(lambda a: a.id == 1)
        assert first is again

    @pytest.mark.asyncio
    async def test_nothing_written_until_save_changes(self, storage):
        unit_of_work = UnitOfWork(storage)
        account = await unit_of_work.get_repository(Account).get_by_id(1)
        account.balance -= Decimal("30")

        assert unit_of_work.has_changes
        assert (await storage.load("accounts", "1"))["balance"] == "100"

        assert await unit_of_work.save_changes() == 1
        assert not unit_of_work.has_changes

        stored = await storage.load("accounts", "1")
        assert stored["balance"] == "70"
        assert stored["modified_by"] == "System"
        assert stored["modified_date"] is not None

    @pytest.mark.asyncio
    async def test_save_changes_without_changes(self, storage):
        unit_of_work = UnitOfWork(storage)
        await unit_of_work.get_repository(Account).get_all()
        assert await unit_of_work.save_changes() == 0

    @pytest.mark.asyncio
    async def test_added_entities_get_ids_and_audit_fields(self, storage):
        unit_of_work = UnitOfWork(storage, user="teller")
        repository = unit_of_work.get_repository(Account)

        first = Account(customer_id=1, balance=Decimal("5"))
        second = Account(customer_id=1, balance=Decimal("6"))
        await repository.add_range([first, second])
        await repository.add(first)

        assert await unit_of_work.save_changes() == 2
        assert (first.id, second.id) == (3, 4)
        assert first.created_by == "teller"
        assert first.created_date is not None
        assert await storage.count("accounts") == 4

    @pytest.mark.asyncio
    async def test_failed_commit_writes_nothing(self):
        """A store failure mid-commit leaves the store unchanged"""
        storage = FailingStorage(fail_on_save=4)
        await storage.save("accounts", "1", Account(id=1, balance=Decimal("100")).to_dict())
        await storage.save("accounts", "2", Account(id=2, balance=Decimal("50")).to_dict())

        unit_of_work = UnitOfWork(storage)
        repository = unit_of_work.get_repository(Account)
        source = await repository.get_by_id(1)
        target = await repository.get_by_id(2)
        loan = Account(balance=Decimal("25"), account_type_id=AccountTypeId.LOAN)
        await repository.add(loan)

        source.balance -= Decimal("25")
        target.balance += Decimal("25")

        with pytest.raises(IOError):
            await unit_of_work.save_changes()

        assert loan.id is None
        assert await storage.count("accounts") == 2
        assert (await storage.load("accounts", "1"))["balance"] == "100"
        assert (await storage.load("accounts", "2"))["balance"] == "50"

    @pytest.mark.asyncio
    async def test_failed_commit_discards_batch(self):
        """After a failed commit the same unit of work does not replay it"""
        storage = FailingStorage(fail_on_save=4)
        await storage.save("accounts", "1", Account(id=1, balance=Decimal("100")).to_dict())
        await storage.save("accounts", "2", Account(id=2, balance=Decimal("50")).to_dict())

        unit_of_work = UnitOfWork(storage)
        repository = unit_of_work.get_repository(Account)
        source = await repository.get_by_id(1)
        target = await repository.get_by_id(2)
        await repository.add(Account(balance=Decimal("25"), account_type_id=AccountTypeId.LOAN))
        source.balance -= Decimal("25")
        target.balance += Decimal("25")

        with pytest.raises(IOError):
            await unit_of_work.save_changes()

        assert source.balance == Decimal("100")
        assert target.balance == Decimal("50")
        assert source.modified_date is None
        assert not unit_of_work.has_changes
        assert await repository.get_by_id(1) is source

        target.balance += Decimal("1")
        assert await unit_of_work.save_changes() == 1
        assert await storage.count("accounts") == 2
        assert (await storage.load("accounts", "1"))["balance"] == "100"
        assert (await storage.load("accounts", "2"))["balance"] == "51"

    @pytest.mark.asyncio
    async def test_failed_commit_drops_staged_deletes(self):
        storage = FailingStorage(fail_on_save=3)
        await storage.save("accounts", "1", Account(id=1, balance=Decimal("100")).to_dict())
        await storage.save("accounts", "2", Account(id=2, balance=Decimal("50")).to_dict())

        unit_of_work = UnitOfWork(storage)
        repository = unit_of_work.get_repository(Account)
        (await repository.get_by_id(1)).balance = Decimal("0")
        await repository.delete(2)

        with pytest.raises(IOError):
            await unit_of_work.save_changes()

        assert not unit_of_work.has_changes
        assert await unit_of_work.save_changes() == 0
        assert await storage.count("accounts") == 2


class TestStagedUpdatesAndDeletes:
    """Test explicit update, delete and paging"""

    @pytest_asyncio.fixture
    async def storage(self):
        storage = AsyncInMemoryStorage()
        for i, balance in enumerate(["30", "10", "50", "20", "40"], start=1):
            await storage.save("accounts", str(i), Account(id=i, customer_id=1, balance=Decimal(balance)).to_dict())
        return storage

    @pytest.mark.asyncio
    async def test_update_detached_entity(self, storage):
        data = await storage.load("accounts", "2")
        detached = Account.from_dict(data)
        detached.balance = Decimal("11")

        unit_of_work = UnitOfWork(storage)
        await unit_of_work.get_repository(Account).update(detached)

        assert unit_of_work.has_changes
        assert await unit_of_work.save_changes() == 1
        assert (await storage.load("accounts", "2"))["balance"] == "11"

    @pytest.mark.asyncio
    async def test_update_requires_saved_entity(self, storage):
        repository = UnitOfWork(storage).get_repository(Account)
        with pytest.raises(ValueError):
            await repository.update(Account(balance=Decimal("1")))

    @pytest.mark.asyncio
    async def test_delete_by_id_and_entity(self, storage):
        unit_of_work = UnitOfWork(storage)
        repository = unit_of_work.get_repository(Account)

        await repository.delete(1)
        await repository.delete(await repository.get_by_id(2))
        assert await storage.count("accounts") == 5

        assert await unit_of_work.save_changes() == 2
        assert await storage.count("accounts") == 3
        assert [a.id for a in await repository.get_all()] == [3, 4, 5]

    @pytest.mark.asyncio
    async def test_delete_unknown_id(self, storage):
        repository = UnitOfWork(storage).get_repository(Account)
        with pytest.raises(KeyError):
            await repository.delete(99)

    @pytest.mark.asyncio
    async def test_delete_of_unsaved_entity_cancels_add(self, storage):
        unit_of_work = UnitOfWork(storage)
        repository = unit_of_work.get_repository(Account)
        account = Account(customer_id=1)

        await repository.add(account)
        await repository.delete(account)

        assert not unit_of_work.has_changes
        assert await unit_of_work.save_changes() == 0

    @pytest.mark.asyncio
    async def test_get_page(self, storage):
        repository = UnitOfWork(storage).get_repository(Account)

        page = await repository.get_page(2, 2, order_by=lambda a: a.balance)
        assert [a.balance for a in page.data] == [Decimal("30"), Decimal("40")]
        assert page.total_count == 5
        assert page.total_pages == 3

        last = await repository.get_page(3, 2, order_by=lambda a: a.balance, ascending=False)
        assert [a.balance for a in last.data] == [Decimal("10")]

        filtered = await repository.get_page(1, 10, predicate=lambda a: a.balance > Decimal("25"))
        assert [a.id for a in filtered.data] == [1, 3, 5]
        assert filtered.total_pages == 1

    @pytest.mark.asyncio
    async def test_get_page_rejects_bad_bounds(self, storage):
        repository = UnitOfWork(storage).get_repository(Account)
        with pytest.raises(ValueError):
            await repository.get_page(0, 10)
        with pytest.raises(ValueError):
            await repository.get_page(1, 0)
