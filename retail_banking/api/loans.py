"""
Loan endpoints
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from .accounts import account_to_dict, load_customer_accounts
from .auth import get_current_customer_number, get_customer_service, get_loan_service
from .schemas import LoanQuoteRequest, LoanRequest
from ..customers import CustomerService
from ..loans import LoanService
from ..result import ResultError


router = APIRouter()


@router.get("/options")
async def get_loan_options(
    customer_number: UUID = Depends(get_current_customer_number),
    customers: CustomerService = Depends(get_customer_service),
    loans: LoanService = Depends(get_loan_service)
):
    """Get the accounts a loan can be paid into and the durations on offer"""
    accounts = await load_customer_accounts(customers, customer_number)

    durations = await loans.get_loan_durations()
    if durations.is_failure and durations.error != ResultError.RECORD_NOT_FOUND:
        raise HTTPException(status_code=500, detail=durations.error.message)

    return {
        "accounts": [account_to_dict(a) for a in accounts if not a.is_loan],
        "durations": durations.value if durations.is_success else []
    }


@router.post("/quote")
async def quote_loan(
    request: LoanQuoteRequest,
    customer_number: UUID = Depends(get_current_customer_number),
    loans: LoanService = Depends(get_loan_service)
):
    """Get the rate the customer qualifies for"""
    result = await loans.get_loan_rate(customer_number, request.duration)

    if result.is_failure:
        return {"approved": False, "duration": request.duration}

    return {"approved": True, "duration": request.duration, "rate": result.value.rate}


@router.post("", status_code=status.HTTP_201_CREATED)
async def apply_for_loan(
    request: LoanRequest,
    customer_number: UUID = Depends(get_current_customer_number),
    loans: LoanService = Depends(get_loan_service)
):
    """Disburse a loan into one of the customer's accounts"""
    result = await loans.process_loan(request.amount, customer_number, request.duration, request.account_id)

    if result.is_failure:
        if result.error == ResultError.INVALID_ACCOUNT:
            raise HTTPException(status_code=400, detail="Invalid account")
        if result.error == ResultError.BAD_RATING:
            raise HTTPException(status_code=422, detail="Credit rating does not qualify for this loan")
        raise HTTPException(status_code=500, detail=result.error.message)

    return {
        "amount": str(request.amount),
        "duration": request.duration,
        "account_id": str(request.account_id),
        "message": "Loan approved"
    }
