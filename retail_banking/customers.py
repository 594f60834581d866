"""
Customer Service Module

Customer lookup by name, account listing and fund transfers between
accounts. Every operation returns a Result and never raises.
"""

from decimal import Decimal
from typing import List, Tuple
from uuid import UUID
import logging

from .mapping import Mapper
from .models import Account, Customer
from .repository import UnitOfWork
from .result import Result, ResultError
from .schemas import AccountDto, CustomerDto


class CustomerService:
    """
    Customer and account operations
    """

    def __init__(self, unit_of_work: UnitOfWork, mapper: Mapper, logger: logging.Logger):
        if unit_of_work is None:
            raise ValueError("unit_of_work is required")
        if mapper is None:
            raise ValueError("mapper is required")
        if logger is None:
            raise ValueError("logger is required")

        self.unit_of_work = unit_of_work
        self.mapper = mapper
        self.logger = logger

    async def get_by_name(self, name: str) -> Result[CustomerDto]:
        """
        Get a customer by first name.

        The match is case-insensitive and exact. When several customers share
        the first name, the first one in store order wins.

        Args:
            name: First name to look up

        Returns:
            Result with the CustomerDto, or RECORD_NOT_FOUND
        """
        try:
            self.logger.info("Getting customer by name: %s", name)

            repository = self.unit_of_work.get_repository(Customer)
            wanted = name.casefold()
            customer = await repository.first(lambda c: c.first_name.casefold() == wanted)

            if customer is None:
                self.logger.warning("Customer with name %s not found", name)
                return Result.failure(ResultError.RECORD_NOT_FOUND)

            self.logger.info("Customer with name %s found", name)
            return Result.from_optional(self.mapper.customer(customer))

        except Exception:
            self.logger.exception("An error occurred while getting customer by name: %s", name)
            return Result.failure(
                ResultError("Error.GetByName", "An error occurred while getting customer by name")
            )

    async def get_accounts(self, customer_number: UUID) -> Result[List[AccountDto]]:
        """
        Get all accounts owned by a customer, with account types resolved.

        An unknown customer number yields an empty list, not a failure.

        Args:
            customer_number: External customer identifier

        Returns:
            Result with the list of AccountDto
        """
        try:
            self.logger.info(
                "Getting accounts for customer number: %s", customer_number,
                extra={"customer_number": str(customer_number)}
            )

            repository = self.unit_of_work.get_repository(Account)
            accounts = await repository.find(
                lambda a: a.customer is not None and a.customer.customer_number == customer_number,
                include=("customer", "account_type")
            )

            self.logger.info("Accounts for customer number %s found", customer_number)
            return Result.success(self.mapper.accounts(accounts))

        except Exception:
            self.logger.exception(
                "An error occurred while getting accounts for customer number: %s", customer_number
            )
            return Result.failure(
                ResultError("Error.GetAccounts", "An error occurred while getting accounts for customer")
            )

    async def transfer_funds(
        self,
        source_account_id: UUID,
        target_account_id: UUID,
        amount: Decimal
    ) -> Result[Tuple[Decimal, Decimal]]:
        """
        Move ``amount`` from one account to another.

        The amount is trusted as given: it is not checked for sign, for
        available funds, or for source and target being the same account.
        Callers that need those guarantees must check before calling.

        Args:
            source_account_id: Account to debit
            target_account_id: Account to credit
            amount: Amount to move

        Returns:
            Result with (source balance, target balance) after the transfer,
            or ACCOUNT_NOT_FOUND
        """
        try:
            self.logger.info(
                "Transferring %s from account %s to account %s",
                amount, source_account_id, target_account_id,
                extra={
                    "source_account_id": str(source_account_id),
                    "target_account_id": str(target_account_id),
                    "amount": str(amount)
                }
            )

            repository = self.unit_of_work.get_repository(Account)
            source_account = await repository.first(lambda a: a.account_id == source_account_id)
            target_account = await repository.first(lambda a: a.account_id == target_account_id)

            if source_account is None or target_account is None:
                self.logger.warning("Source or target account not found for transfer")
                return Result.failure(ResultError.ACCOUNT_NOT_FOUND)

            source_account.balance -= amount
            target_account.balance += amount

            await self.unit_of_work.save_changes()

            self.logger.info(
                "Transferred %s from account %s to account %s",
                amount, source_account_id, target_account_id
            )
            return Result.success((source_account.balance, target_account.balance))

        except Exception:
            self.logger.exception(
                "An error occurred while transferring %s from account %s to account %s",
                amount, source_account_id, target_account_id
            )
            return Result.failure(
                ResultError("Error.TransferFunds", "An error occurred while transferring funds")
            )
