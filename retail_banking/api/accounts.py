"""
Account endpoints
"""

from typing import Any, Dict, List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from .auth import get_current_customer_number, get_customer_service
from .schemas import TransferRequest
from ..customers import CustomerService
from ..schemas import AccountDto


router = APIRouter()


def account_to_dict(account: AccountDto) -> Dict[str, Any]:
    return {
        "account_id": str(account.account_id),
        "account_number": account.account_number,
        "account_type": account.account_type.name if account.account_type else None,
        "account_type_id": account.account_type_id,
        "balance": str(account.balance),
        "is_loan": account.is_loan
    }


async def load_customer_accounts(service: CustomerService, customer_number: UUID) -> List[AccountDto]:
    """Load the customer's accounts, turning a service failure into a 500"""
    result = await service.get_accounts(customer_number)
    if result.is_failure:
        raise HTTPException(status_code=500, detail=result.error.message)
    return result.value


@router.get("")
async def list_accounts(
    customer_number: UUID = Depends(get_current_customer_number),
    service: CustomerService = Depends(get_customer_service)
):
    """List the customer's accounts and loans"""
    accounts = await load_customer_accounts(service, customer_number)

    return {
        "accounts": [account_to_dict(a) for a in accounts if not a.is_loan],
        "loans": [account_to_dict(a) for a in accounts if a.is_loan]
    }


@router.get("/{account_id}")
async def get_account(
    account_id: UUID,
    customer_number: UUID = Depends(get_current_customer_number),
    service: CustomerService = Depends(get_customer_service)
):
    """Get an account with the accounts it can transfer to"""
    accounts = await load_customer_accounts(service, customer_number)

    account = next((a for a in accounts if a.account_id == account_id), None)
    if account is None:
        raise HTTPException(status_code=404, detail="Account not found")

    return {
        "account": account_to_dict(account),
        "max_transfer_amount": str(account.balance),
        "available_accounts": [
            account_to_dict(a) for a in accounts
            if a.account_id != account_id and not a.is_loan
        ]
    }


@router.post("/{account_id}/transfer")
async def transfer_funds(
    account_id: UUID,
    request: TransferRequest,
    customer_number: UUID = Depends(get_current_customer_number),
    service: CustomerService = Depends(get_customer_service)
):
    """Transfer funds between two of the customer's accounts"""
    accounts = {a.account_id: a for a in await load_customer_accounts(service, customer_number)}

    source = accounts.get(account_id)
    if source is None or request.target_account_id not in accounts:
        raise HTTPException(status_code=400, detail="Unable to transfer funds")

    if source.balance < request.amount:
        raise HTTPException(status_code=400, detail="Source account does not have enough funds")

    result = await service.transfer_funds(account_id, request.target_account_id, request.amount)
    if result.is_failure:
        raise HTTPException(status_code=400, detail="Unable to transfer funds")

    source_balance, target_balance = result.value
    return {
        "source_account_id": str(account_id),
        "source_balance": str(source_balance),
        "target_account_id": str(request.target_account_id),
        "target_balance": str(target_balance),
        "message": "Transfer completed successfully"
    }
