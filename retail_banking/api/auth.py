"""
Session and service dependencies
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID
import logging

import jwt
from fastapi import Depends, HTTPException, Request, Response

from ..async_storage import AsyncStorageInterface
from ..config import BankingConfig
from ..customers import CustomerService
from ..loans import LoanService
from ..mapping import Mapper
from ..repository import UnitOfWork
from ..schemas import CustomerDto

mapper = Mapper()


def get_banking_config(request: Request) -> BankingConfig:
    return request.app.state.config


def get_storage(request: Request) -> AsyncStorageInterface:
    return request.app.state.storage


def get_unit_of_work(storage: AsyncStorageInterface = Depends(get_storage)) -> UnitOfWork:
    """One unit of work per request; services in the same request share it"""
    return UnitOfWork(storage)


def get_customer_service(unit_of_work: UnitOfWork = Depends(get_unit_of_work)) -> CustomerService:
    return CustomerService(unit_of_work, mapper, logging.getLogger("retail_banking.customers"))


def get_loan_service(unit_of_work: UnitOfWork = Depends(get_unit_of_work)) -> LoanService:
    return LoanService(unit_of_work, mapper, logging.getLogger("retail_banking.loans"))


def create_session_token(customer: CustomerDto, config: BankingConfig) -> str:
    """Issue a signed session token for a logged-in customer"""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(customer.customer_number),
        "name": customer.first_name,
        "iat": now,
        "exp": now + timedelta(hours=config.session_hours)
    }
    return jwt.encode(payload, config.session_secret, algorithm=config.session_algorithm)


def set_session_cookie(response: Response, token: str, config: BankingConfig) -> None:
    response.set_cookie(
        key=config.session_cookie_name,
        value=token,
        max_age=config.session_hours * 3600,
        httponly=True,
        samesite="lax"
    )


def clear_session_cookie(response: Response, config: BankingConfig) -> None:
    response.delete_cookie(key=config.session_cookie_name)


def get_current_customer_number(
    request: Request,
    config: BankingConfig = Depends(get_banking_config)
) -> UUID:
    """Dependency that validates the session cookie and returns the customer number"""
    token = request.cookies.get(config.session_cookie_name)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        payload = jwt.decode(token, config.session_secret, algorithms=[config.session_algorithm])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Session expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid session")

    try:
        return UUID(str(payload.get("sub")))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid session")
