"""POST /v1/invoke - dispatch a named operation with positional string arguments"""

from typing import Callable, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.responses import Response

from smart_lending.api.dependencies import get_engine, get_request_id
from smart_lending.api.v1.applications import JSON_MEDIA_TYPE, to_http_error
from smart_lending.api.v1.schemas import InvokeRequest
from smart_lending.domain.exceptions import DomainException, InvalidInputError
from smart_lending.lifecycle import LoanLifecycleEngine

router = APIRouter()


def _require(args: List[str], count: int, function: str) -> None:
    if len(args) < count:
        raise InvalidInputError(f"{function} expects {count} arguments, got {len(args)}")


def _parse(value: str, kind: type, name: str):
    try:
        return kind(value)
    except ValueError:
        raise InvalidInputError(f"Invalid {name}: {value!r}")


def create_loan_application(engine: LoanLifecycleEngine, args: List[str]) -> bytes:
    """args: number, make, model, loan amount, ssn, age, monthly income, credit score, tenure"""
    _require(args, 9, "CreateLoanApplication")
    if not args[0]:
        raise InvalidInputError("Application number is required")
    application = engine.create(
        application_number=args[0],
        make=args[1],
        model=args[2],
        loan_amount=_parse(args[3], float, "loan amount"),
        ssn=args[4],
        age=_parse(args[5], int, "age"),
        monthly_income=_parse(args[6], float, "monthly income"),
        credit_score=_parse(args[7], int, "credit score"),
        tenure=_parse(args[8], int, "tenure"),
    )
    return engine.codec.encode(application)


def confirm_bid(engine: LoanLifecycleEngine, args: List[str]) -> bytes:
    """args: number, bidding number, bid status"""
    _require(args, 3, "ConfirmBid")
    application = engine.confirm_bid(
        args[0],
        _parse(args[1], int, "bidding number"),
        _parse(args[2], int, "bid status"),
    )
    return engine.codec.encode(application)


def change_payment_status(engine: LoanLifecycleEngine, args: List[str]) -> bytes:
    """args: number, account number (unused), installment number, repayment status"""
    _require(args, 4, "ChangePaymentStatus")
    application = engine.change_payment_status(
        args[0],
        _parse(args[2], int, "installment number"),
        _parse(args[3], int, "repayment status"),
    )
    return engine.codec.encode(application)


def get_application_details(engine: LoanLifecycleEngine, args: List[str]) -> bytes:
    """args: number"""
    _require(args, 1, "GetApplicationDetails")
    return engine.read_record(args[0])


OPERATIONS: Dict[str, Callable[[LoanLifecycleEngine, List[str]], bytes]] = {
    "CreateLoanApplication": create_loan_application,
    "ConfirmBid": confirm_bid,
    "ChangePaymentStatus": change_payment_status,
    "GetApplicationDetails": get_application_details,
}


@router.post("/invoke")
def invoke(
    body: InvokeRequest,
    request: Request,
    engine: LoanLifecycleEngine = Depends(get_engine),
):
    """
    Run a lifecycle operation by name.

    Returns:
        The serialized application record after the operation
    """
    operation = OPERATIONS.get(body.function)
    if operation is None:
        raise HTTPException(status_code=400, detail=f"Invalid function name: {body.function}")

    try:
        content = operation(engine, body.args)
    except DomainException as e:
        raise to_http_error(e, get_request_id(request))
    return Response(content=content, media_type=JSON_MEDIA_TYPE)
