"""Swish Commerce API v2 payment request models.

Field names follow the server-canonical camelCase names so that the models
serialize straight into (and parse straight out of) Swish JSON.
"""
from __future__ import annotations

import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import ApplicationError, ProtocolError

TERMINAL_STATUSES = frozenset({"PAID", "DECLINED", "ERROR", "CANCELLED"})

MAX_AMOUNT = Decimal("999999999999.99")

_AMOUNT_RE = re.compile(r"^\d{1,12}(\.\d{2})?$")
_PAYER_ALIAS_RE = re.compile(r"^\d{8,15}$")
_PAYER_SSN_RE = re.compile(r"^\d{12}$")
_REFERENCE_RE = re.compile(r"^[0-9A-Za-zÅÄÖåäö\-]{1,35}$")
_MESSAGE_RE = re.compile(r"^[0-9A-Za-zÀ-ÖØ-öø-ÿ :;.,?!()\-\"”]{0,50}$")


def _normalize_amount(value: Any) -> Any:
    # Swish echoes amounts as JSON numbers
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)):
        try:
            return f"{Decimal(str(value)):.2f}"
        except InvalidOperation:
            return value
    return value


class PaymentRequestInput(BaseModel):
    """Body of `PUT /paymentrequests/{id}`."""

    model_config = ConfigDict(frozen=True)

    payeeAlias: str = Field(min_length=1)
    amount: str = Field(min_length=1)
    currency: str = Field(min_length=1)
    callbackUrl: str = Field(min_length=1)
    payerAlias: Optional[str] = None
    payeePaymentReference: Optional[str] = None
    payerSSN: Optional[str] = None
    ageLimit: Optional[int] = None
    message: Optional[str] = None

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_to_str(cls, v: Any) -> Any:
        return _normalize_amount(v)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)

    def advisory_problems(self) -> List[str]:
        """
        Local sanity checks mirroring the Swish field rules.
        Swish is authoritative, so these are reported, not enforced.
        """
        problems: List[str] = []

        if not _AMOUNT_RE.match(self.amount):
            problems.append("amount must be digits with an optional 2-digit decimal part")
        else:
            value = Decimal(self.amount)
            if value <= 0 or value > MAX_AMOUNT:
                problems.append(f"amount must be within (0, {MAX_AMOUNT}]")

        if self.currency != "SEK":
            problems.append("currency must be SEK")
        if not self.callbackUrl.lower().startswith("https://"):
            problems.append("callbackUrl must use HTTPS")

        if self.payerAlias is not None and not _PAYER_ALIAS_RE.match(self.payerAlias):
            problems.append("payerAlias must be 8 to 15 digits")
        if self.payeePaymentReference is not None and not _REFERENCE_RE.match(self.payeePaymentReference):
            problems.append("payeePaymentReference must be 1 to 35 characters of [0-9A-Za-zÅÄÖåäö-]")
        if self.payerSSN is not None and not _PAYER_SSN_RE.match(self.payerSSN):
            problems.append("payerSSN must be 12 digits (YYYYMMDDNNNN)")
        if self.ageLimit is not None and not 1 <= self.ageLimit <= 99:
            problems.append("ageLimit must be within 1..99")
        if self.message is not None and not _MESSAGE_RE.match(self.message):
            problems.append("message must be at most 50 characters of letters, digits and :;.,?!()-\"")

        return problems


class SwishErrorItem(BaseModel):
    errorCode: Optional[str] = None
    errorMessage: Optional[str] = None
    additionalInformation: Optional[str] = None


class PaymentRequestState(BaseModel):
    """
    Immutable snapshot of a payment request as last reported by Swish.
    Every create/poll produces a new instance; nothing is updated in place.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    location: Optional[str] = None
    statusCode: int
    paymentRequestToken: Optional[str] = None

    payeePaymentReference: Optional[str] = None
    paymentReference: Optional[str] = None
    callbackUrl: Optional[str] = None
    payerAlias: Optional[str] = None
    payeeAlias: Optional[str] = None
    amount: Optional[str] = None
    currency: Optional[str] = None
    message: Optional[str] = None

    status: str
    dateCreated: Optional[datetime] = None
    datePaid: Optional[datetime] = None

    errorCode: Optional[str] = None
    errorMessage: Optional[str] = None

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_to_str(cls, v: Any) -> Any:
        return _normalize_amount(v)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_read_failure(self) -> bool:
        """ERROR built from a non-2xx exchange rather than reported by Swish in a status body."""
        return self.status == "ERROR" and not 200 <= self.statusCode < 300

    def raise_for_status(self) -> "PaymentRequestState":
        if self.status == "ERROR":
            raise ApplicationError(self.errorCode, self.errorMessage, status_code=self.statusCode)
        return self

    @classmethod
    def from_response(
        cls,
        body: Any,
        *,
        location: str,
        status_code: int,
        payment_request_token: Optional[str] = None,
    ) -> "PaymentRequestState":
        """Parse a `GET {location}` body; anything unexpected is a ProtocolError."""
        if not isinstance(body, dict):
            raise ProtocolError(f"expected a JSON object, got {type(body).__name__}", status_code)
        data = {
            **body,
            "location": location,
            "statusCode": status_code,
            "paymentRequestToken": payment_request_token,
        }
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ProtocolError(f"unexpected payment request shape: {e}", status_code) from e

    @classmethod
    def from_errors(
        cls,
        request_id: str,
        errors: List[SwishErrorItem],
        *,
        status_code: int,
        location: Optional[str] = None,
        fallback_message: Optional[str] = None,
    ) -> "PaymentRequestState":
        first = errors[0] if errors else SwishErrorItem(errorMessage=fallback_message)
        return cls(
            id=request_id,
            location=location,
            statusCode=status_code,
            status="ERROR",
            errorCode=first.errorCode,
            errorMessage=first.errorMessage,
        )


def parse_error_items(body: Any, status_code: int) -> List[SwishErrorItem]:
    """Swish error bodies are a JSON array of {errorCode, errorMessage}."""
    if not isinstance(body, list) or not all(isinstance(item, dict) for item in body):
        raise ProtocolError("expected a JSON array of error objects", status_code)
    try:
        return [SwishErrorItem.model_validate(item) for item in body]
    except ValidationError as e:
        raise ProtocolError(f"unexpected error object shape: {e}", status_code) from e
