from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from ..db import upsert_payment_request, get_payment_request_record, update_status
from ..errors import ConnectivityError, CredentialError, ProtocolError, SwishError
from ..settings import settings
from ..swish.client import SwishClient
from ..swish.credentials import CredentialStore
from ..swish.polling import poll_until_terminal
from ..swish.schemas import PaymentRequestInput, PaymentRequestState

router = APIRouter()


@lru_cache
def build_swish_client() -> SwishClient:
    credentials = CredentialStore.from_files(
        cert_path=settings.SWISH_CERT_PATH,
        key_path=settings.SWISH_KEY_PATH,
        passphrase=settings.SWISH_PASSPHRASE,
        ca_path=settings.SWISH_CA_PATH,
    )
    return SwishClient(
        credentials=credentials,
        base_url=settings.SWISH_BASE_URL,
        timeout_sec=settings.SWISH_TIMEOUT_SEC,
    )


def get_swish_client() -> SwishClient:
    try:
        return build_swish_client()
    except CredentialError as e:
        raise _to_http_error(e) from e


def _to_http_error(e: SwishError) -> HTTPException:
    if isinstance(e, ConnectivityError):
        status_code, message = 503, f"Swish unreachable: {e}"
    elif isinstance(e, ProtocolError):
        status_code, message = 502, f"Unexpected Swish response: {e}"
    else:
        status_code, message = 500, f"Swish credentials unavailable: {e}"
    return HTTPException(
        status_code=status_code,
        detail={"message": message, "id": e.request_id, "location": e.location},
    )


def _state_response(state: PaymentRequestState, status_code: int) -> JSONResponse:
    return JSONResponse(content=state.model_dump(mode="json"), status_code=status_code)


@router.post("/paymentrequests")
async def create_payment_request(
    body: PaymentRequestInput,
    swish: SwishClient = Depends(get_swish_client),
):
    """
    Create a payment request at Swish and return its first snapshot.
    201 + state when Swish accepted it; Swish's own status code + ERROR state otherwise.
    If Swish accepted it but the first read failed, the request is still recorded
    (its id is in the error detail) so it can be read later instead of re-created.
    """
    try:
        state = await swish.create_payment_request(body)
    except (ConnectivityError, ProtocolError) as e:
        if e.location:
            await upsert_payment_request(
                id=e.request_id,
                location=e.location,
                payment_request_token=e.payment_request_token,
                payee_payment_reference=body.payeePaymentReference,
            )
        raise _to_http_error(e) from e

    if state.status == "ERROR" and state.location is None:
        return _state_response(state, state.statusCode)

    # a failed first read says nothing about the payment itself
    await upsert_payment_request(
        id=state.id,
        location=state.location,
        status=None if state.is_read_failure else state.status,
        status_code=None if state.is_read_failure else state.statusCode,
        payment_request_token=state.paymentRequestToken,
        payee_payment_reference=body.payeePaymentReference,
    )
    return _state_response(state, state.statusCode if state.is_read_failure else 201)


@router.get("/paymentrequests/{request_id}")
async def get_payment_request(
    request_id: str,
    wait: bool = False,
    swish: SwishClient = Depends(get_swish_client),
):
    """
    Read the current state of a known payment request.
    With ?wait=true, keep reading (POLL_MAX_ATTEMPTS x POLL_INTERVAL_SEC) until it is terminal.
    """
    record = await get_payment_request_record(request_id)
    if not record:
        raise HTTPException(status_code=404, detail="Unknown payment request")

    try:
        if wait:
            state = await poll_until_terminal(
                swish,
                record["location"],
                max_attempts=settings.POLL_MAX_ATTEMPTS,
                interval_sec=settings.POLL_INTERVAL_SEC,
            )
        else:
            state = await swish.get_payment_request(record["location"])
    except (ConnectivityError, ProtocolError) as e:
        raise _to_http_error(e) from e

    if record.get("payment_request_token") and not state.paymentRequestToken:
        state = state.model_copy(update={"paymentRequestToken": record["payment_request_token"]})

    # only a status Swish reported may replace the stored one
    if state.is_read_failure:
        return _state_response(state, state.statusCode)

    await update_status(request_id, state.status, state.statusCode)
    return _state_response(state, 200)
