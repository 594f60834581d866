"""
Login and logout endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, Response

from .auth import (
    clear_session_cookie, create_session_token, get_banking_config,
    get_customer_service, set_session_cookie
)
from .schemas import LoginRequest
from ..config import BankingConfig
from ..customers import CustomerService


router = APIRouter()


@router.post("/login")
async def login(
    request: LoginRequest,
    response: Response,
    service: CustomerService = Depends(get_customer_service),
    config: BankingConfig = Depends(get_banking_config)
):
    """Log a customer in by first name and start a session"""
    result = await service.get_by_name(request.name)
    if result.is_failure:
        raise HTTPException(status_code=401, detail="Not a valid name")

    customer = result.value
    set_session_cookie(response, create_session_token(customer, config), config)

    return {
        "customer_number": str(customer.customer_number),
        "name": customer.first_name,
        "message": "Login successful"
    }


@router.post("/logout")
async def logout(
    response: Response,
    config: BankingConfig = Depends(get_banking_config)
):
    """End the current session"""
    clear_session_cookie(response, config)
    return {"message": "Logout successful"}
