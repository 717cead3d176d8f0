"""Loan application endpoints - create, read, confirm bid, update installments"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.responses import Response

from smart_lending.api.dependencies import get_engine, get_request_id
from smart_lending.api.v1.schemas import (
    ConfirmBidRequest,
    CreateApplicationRequest,
    PaymentStatusRequest,
    TransactionHistoryResponse,
    TransactionItem,
)
from smart_lending.domain.exceptions import (
    ApplicationNotFoundError,
    DeserializationError,
    DomainException,
    DuplicateApplicationError,
    InvalidInputError,
    StoreFailureError,
)
from smart_lending.domain.models import LoanApplication
from smart_lending.lifecycle import LoanLifecycleEngine

router = APIRouter()

JSON_MEDIA_TYPE = "application/json"


def to_http_error(exc: DomainException, request_id: str) -> HTTPException:
    """Map a domain failure to the HTTP status the caller sees"""
    if isinstance(exc, InvalidInputError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, DuplicateApplicationError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, ApplicationNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, StoreFailureError):
        logging.error(f"Record store error: {exc}", extra={"request_id": request_id})
        return HTTPException(status_code=503, detail="Record store unavailable")
    if isinstance(exc, DeserializationError):
        logging.error(f"Corrupt record: {exc}", extra={"request_id": request_id})
        return HTTPException(status_code=500, detail="Stored application is unreadable")
    logging.error(f"Unexpected domain error: {exc}", extra={"request_id": request_id})
    return HTTPException(status_code=500, detail="Internal server error")


def application_response(engine: LoanLifecycleEngine, application: LoanApplication, status_code: int = 200) -> Response:
    return Response(content=engine.codec.encode(application), media_type=JSON_MEDIA_TYPE, status_code=status_code)


@router.post("/applications", status_code=201)
def create_application(
    body: CreateApplicationRequest,
    request: Request,
    engine: LoanLifecycleEngine = Depends(get_engine),
):
    """
    Submit a loan application and collect quotations from every lender.

    Returns:
        The application record with status QUOTATIONS_RECEIVED and one
        quotation per lender
    """
    try:
        application = engine.create(**body.model_dump())
    except DomainException as e:
        raise to_http_error(e, get_request_id(request))
    return application_response(engine, application, status_code=201)


@router.get("/applications/{application_number}")
def get_application(
    application_number: str,
    request: Request,
    engine: LoanLifecycleEngine = Depends(get_engine),
):
    """Return the stored application record exactly as persisted"""
    try:
        raw = engine.read_record(application_number)
    except DomainException as e:
        raise to_http_error(e, get_request_id(request))
    return Response(content=raw, media_type=JSON_MEDIA_TYPE)


@router.post("/applications/{application_number}/bid")
def confirm_bid(
    application_number: str,
    body: ConfirmBidRequest,
    request: Request,
    engine: LoanLifecycleEngine = Depends(get_engine),
):
    """
    Accept or reject a quotation.

    Accepting a known bidding number issues an account number and a
    repayment schedule of tenure * 12 installments.
    """
    try:
        application = engine.confirm_bid(application_number, body.bidding_number, body.bid_status)
    except DomainException as e:
        raise to_http_error(e, get_request_id(request))
    return application_response(engine, application)


@router.put("/applications/{application_number}/installments/{installment_number}")
def change_payment_status(
    application_number: str,
    installment_number: int,
    body: PaymentStatusRequest,
    request: Request,
    engine: LoanLifecycleEngine = Depends(get_engine),
):
    """Set an installment's repayment status and reclassify the loan"""
    try:
        application = engine.change_payment_status(application_number, installment_number, body.repayment_status)
    except DomainException as e:
        raise to_http_error(e, get_request_id(request))
    return application_response(engine, application)


@router.get("/applications/{application_number}/transactions", response_model=TransactionHistoryResponse)
def get_transaction_history(
    application_number: str,
    request: Request,
    engine: LoanLifecycleEngine = Depends(get_engine),
):
    """
    Retrieve the audit trail of an application.

    Returns:
        One entry per persisted write, oldest first
    """
    try:
        application = engine.read(application_number)
    except DomainException as e:
        raise to_http_error(e, get_request_id(request))

    items = [
        TransactionItem(
            application_state=t.application_state,
            transaction_id=t.transaction_id,
            transaction_timestamp=t.transaction_timestamp,
            transaction_date=t.transaction_date.isoformat(),
        )
        for t in application.transactions
    ]
    return TransactionHistoryResponse(
        application_number=application.application_number,
        status=application.status,
        transactions=items,
    )
