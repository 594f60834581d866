"""
Entity to DTO mapping used by the service layer
"""

from typing import Iterable, List

from .models import Account, AccountType, Customer, LoanRate
from .schemas import AccountDto, AccountTypeDto, CustomerDto, LoanRateDto


class Mapper:
    """Maps stored entities onto the pydantic DTOs handed to callers"""

    def account_type(self, account_type: AccountType) -> AccountTypeDto:
        return AccountTypeDto(name=account_type.name)

    def account(self, account: Account) -> AccountDto:
        return AccountDto(
            customer_id=account.customer_id,
            balance=account.balance,
            account_type_id=int(account.account_type_id),
            account_id=account.account_id,
            account_number=account.account_number,
            account_type=self.account_type(account.account_type) if account.account_type else None,
            created_date=account.created_date,
            modified_date=account.modified_date
        )

    def accounts(self, accounts: Iterable[Account]) -> List[AccountDto]:
        return [self.account(account) for account in accounts]

    def customer(self, customer: Customer) -> CustomerDto:
        return CustomerDto(
            first_name=customer.first_name,
            last_name=customer.last_name,
            credit_score=customer.credit_score,
            customer_number=customer.customer_number
        )

    def loan_rate(self, rate: LoanRate) -> LoanRateDto:
        return LoanRateDto(
            rating_from=rate.rating_from,
            rating_to=rate.rating_to,
            duration=rate.duration,
            rate=rate.rate
        )
