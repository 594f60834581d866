"""
Loan Service Module

Loan durations, credit-score based rate resolution and loan disbursement.

A loan is disbursed as a single lump sum: a new Loan-type account is opened
for the customer holding the borrowed amount, and the same amount is
credited to one of the customer's own accounts. Both writes share one commit.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID
import asyncio
import logging
import random

from .mapping import Mapper
from .models import Account, AccountTypeId, Customer, LoanRate
from .repository import UnitOfWork
from .result import Result, ResultError
from .schemas import LoanRateDto

ACCOUNT_NUMBER_LENGTH = 8


class LoanService:
    """
    Loan rate lookup and disbursement
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
        self._random = random.Random()

    async def get_loan_durations(self) -> Result[List[int]]:
        """Get the distinct loan durations offered, in ascending order"""
        try:
            self.logger.info("Getting loan durations")

            rates = await self.unit_of_work.get_repository(LoanRate).get_all()

            if not rates:
                self.logger.warning("No loan rates found")
                return Result.failure(ResultError.RECORD_NOT_FOUND)

            durations = sorted({rate.duration for rate in rates})
            self.logger.info("Loan durations retrieved successfully")
            return Result.success(durations)

        except Exception:
            self.logger.exception("An error occurred while getting loan durations")
            return Result.failure(
                ResultError("Error.GetLoanDurations", "An error occurred while getting loan durations")
            )

    async def get_loan_rate(self, customer_id: UUID, duration: int) -> Result[LoanRateDto]:
        """
        Get the loan rate that applies to a customer for a duration.

        Args:
            customer_id: External customer number
            duration: Loan duration in years

        Returns:
            Result with the LoanRateDto, or RECORD_NOT_FOUND when either the
            customer or a matching credit-score band is missing
        """
        try:
            self.logger.info(
                "Getting loan rate for customer %s and duration %s", customer_id, duration,
                extra={"customer_number": str(customer_id), "duration": duration}
            )

            customer = await self._find_customer(customer_id)

            if customer is None:
                self.logger.warning("Customer with ID %s not found", customer_id)
                return Result.failure(ResultError.RECORD_NOT_FOUND)

            rate = await self._find_rate(customer, duration)

            if rate is None:
                self.logger.warning(
                    "Loan rate not found for customer %s with duration %s", customer_id, duration
                )
                return Result.failure(ResultError.RECORD_NOT_FOUND)

            self.logger.info(
                "Loan rate retrieved successfully for customer %s with duration %s", customer_id, duration
            )
            return Result.success(self.mapper.loan_rate(rate))

        except Exception:
            self.logger.exception(
                "An error occurred while getting loan rate for customer %s and duration %s",
                customer_id, duration
            )
            return Result.failure(
                ResultError("Error.GetLoanRate", "An error occurred while getting loan rate")
            )

    async def process_loan(
        self,
        amount: Decimal,
        customer_id: UUID,
        duration: int,
        target_account_id: UUID
    ) -> Result[None]:
        """
        Disburse an approved loan.

        Args:
            amount: Loan amount
            customer_id: External customer number of the borrower
            duration: Loan duration in years
            target_account_id: Borrower's account receiving the funds

        Returns:
            Empty success, INVALID_ACCOUNT when the target account does not
            belong to the customer, or BAD_RATING when no credit-score band
            matches
        """
        try:
            self.logger.info(
                "Processing loan for customer %s with amount %s and duration %s",
                customer_id, amount, duration,
                extra={
                    "customer_number": str(customer_id),
                    "amount": str(amount),
                    "duration": duration,
                    "target_account_id": str(target_account_id)
                }
            )

            accounts = self.unit_of_work.get_repository(Account)

            customer, account = await asyncio.gather(
                self._find_customer(customer_id),
                accounts.first(lambda a: a.account_id == target_account_id)
            )

            if customer is None or account is None or account.customer_id != customer.id:
                self.logger.warning("Invalid account for customer %s", customer_id)
                return Result.failure(ResultError.INVALID_ACCOUNT)

            rate = await self._find_rate(customer, duration)

            if rate is None:
                self.logger.warning(
                    "Customer %s does not have adequate credit rating for duration %s",
                    customer_id, duration
                )
                return Result.failure(ResultError.BAD_RATING)

            loan_account = Account(
                customer_id=customer.id,
                account_number=self.generate_account_number(),
                balance=amount,
                account_type_id=AccountTypeId.LOAN,
                created_by="System",
                created_date=datetime.now()
            )

            await accounts.add(loan_account)
            account.balance += amount
            await self.unit_of_work.save_changes()

            self.logger.info(
                "Loan processed successfully for customer %s with amount %s and duration %s",
                customer_id, amount, duration
            )
            return Result.success()

        except Exception:
            self.logger.exception(
                "An error occurred while processing loan for customer %s with amount %s and duration %s",
                customer_id, amount, duration
            )
            return Result.failure(
                ResultError("Error.ProcessLoan", "An error occurred while processing loan")
            )

    def generate_account_number(self) -> str:
        """
        Generate a display account number of 8 random digits.

        Leading zeros are allowed and existing numbers are not checked;
        the number is cosmetic and never used as a lookup key.
        """
        account_number = "".join(
            str(self._random.randint(0, 9)) for _ in range(ACCOUNT_NUMBER_LENGTH)
        )
        self.logger.info("Generated account number: %s", account_number)
        return account_number

    async def _find_customer(self, customer_number: UUID) -> Optional[Customer]:
        return await self.unit_of_work.get_repository(Customer).first(
            lambda c: c.customer_number == customer_number
        )

    async def _find_rate(self, customer: Customer, duration: int) -> Optional[LoanRate]:
        return await self.unit_of_work.get_repository(LoanRate).first(
            lambda r: r.duration == duration and r.covers(customer.credit_score)
        )
