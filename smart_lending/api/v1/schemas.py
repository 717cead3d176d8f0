"""Pydantic schemas for API request validation"""

from pydantic import BaseModel, Field
from typing import List


class CreateApplicationRequest(BaseModel):
    """Request body for POST /v1/applications"""

    application_number: str = Field(..., description="Caller-assigned application number")
    make: str = Field("", description="Vehicle make")
    model: str = Field("", description="Vehicle model")
    loan_amount: float = Field(..., ge=0, allow_inf_nan=False, description="Requested loan amount")
    ssn: str = Field(..., description="Applicant identifier, 7 characters")
    age: int = Field(..., description="Applicant age in years")
    monthly_income: float = Field(..., allow_inf_nan=False, description="Applicant monthly income")
    credit_score: int = Field(..., description="Applicant credit score")
    tenure: int = Field(..., ge=0, description="Requested tenure in years")


class ConfirmBidRequest(BaseModel):
    """Request body for POST /v1/applications/{application_number}/bid"""

    bidding_number: int
    bid_status: int = Field(..., description="2 = bid accepted, 3 = bid rejected")


class PaymentStatusRequest(BaseModel):
    """Request body for PUT /v1/applications/{application_number}/installments/{installment_number}"""

    repayment_status: int = Field(..., description="0 not demanded, 1 demanded, 2 recovered, 3 missed")


class InvokeRequest(BaseModel):
    """Request body for POST /v1/invoke"""

    function: str = Field(..., min_length=1, description="Operation name")
    args: List[str] = Field(default_factory=list, description="Positional string arguments")


class TransactionItem(BaseModel):
    """Single audit trail entry"""

    application_state: int
    transaction_id: str
    transaction_timestamp: str
    transaction_date: str


class TransactionHistoryResponse(BaseModel):
    """Response for GET /v1/applications/{application_number}/transactions"""

    application_number: str
    status: int
    transactions: List[TransactionItem]
