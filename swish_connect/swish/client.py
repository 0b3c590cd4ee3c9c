from __future__ import annotations

import json
import logging
from typing import Any, Optional
from urllib.parse import urlsplit

import httpx

from ..errors import ConnectivityError, ProtocolError
from ..settings import settings
from ..utils.http import client
from .credentials import CredentialStore
from .ids import RequestIdGenerator
from .schemas import PaymentRequestInput, PaymentRequestState, parse_error_items

logger = logging.getLogger(__name__)


class SwishClient:
    """
    Swish Commerce API v2, payment requests:
      - PUT {base_url}/paymentrequests/{id}  (create, 201 + Location)
      - GET {location}                       (current state)

    Every call is a single exchange. The client never retries or polls;
    waiting for a terminal status is up to the caller (see `polling`).

    Transport faults raise ConnectivityError, unexpected responses raise
    ProtocolError, and Swish rejections come back as a state with
    status="ERROR" (use `state.raise_for_status()` to turn that into an
    ApplicationError).
    """

    def __init__(
        self,
        credentials: Optional[CredentialStore] = None,
        base_url: Optional[str] = None,
        id_generator: Optional[RequestIdGenerator] = None,
        timeout_sec: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        if http_client is None:
            if credentials is None:
                raise ValueError("either credentials or http_client is required")
            http_client = client(verify=credentials.build_tls_context(), timeout_sec=timeout_sec)
        self._http = http_client
        self.base_url = (base_url or settings.SWISH_BASE_URL).rstrip("/")
        self.id_generator = id_generator or RequestIdGenerator()

    async def __aenter__(self) -> "SwishClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ---- transport ----
    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return await self._http.request(method, url, **kwargs)
        except httpx.TransportError as e:
            raise ConnectivityError(f"{method} {url} failed: {e!r}") from e

    def _json(self, resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ProtocolError(f"response body is not JSON: {resp.text[:200]!r}", resp.status_code) from e

    def _error_state(self, request_id: str, resp: httpx.Response, location: Optional[str] = None) -> PaymentRequestState:
        fallback = f"HTTP {resp.status_code} {resp.reason_phrase}".strip()
        errors = parse_error_items(self._json(resp), resp.status_code) if resp.content.strip() else []
        return PaymentRequestState.from_errors(
            request_id,
            errors,
            status_code=resp.status_code,
            location=location,
            fallback_message=fallback,
        )

    # ---- API ----
    async def create_payment_request(self, payment: PaymentRequestInput) -> PaymentRequestState:
        for problem in payment.advisory_problems():
            logger.warning("payment request input: %s", problem)

        request_id = self.id_generator.next()
        url = f"{self.base_url}/paymentrequests/{request_id}"
        resp = await self._send(
            "PUT",
            url,
            content=json.dumps(payment.to_payload(), ensure_ascii=False).encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )

        if resp.is_success:
            location = resp.headers.get("location")
            if not location:
                raise ProtocolError(
                    f"payment request {request_id} accepted without a Location header", resp.status_code
                )
            token = resp.headers.get("paymentrequesttoken")
            logger.info("payment request created id=%s status_code=%s", request_id, resp.status_code)
            try:
                state = await self.get_payment_request(location)
            except (ConnectivityError, ProtocolError) as e:
                e.request_id, e.location, e.payment_request_token = request_id, location, token
                raise
            if token:
                state = state.model_copy(update={"paymentRequestToken": token})
            return state

        state = self._error_state(request_id, resp)
        logger.warning(
            "payment request rejected id=%s status_code=%s error_code=%s",
            request_id,
            resp.status_code,
            state.errorCode,
        )
        return state

    async def get_payment_request(self, location: str) -> PaymentRequestState:
        resp = await self._send("GET", location)

        if not resp.is_success:
            request_id = urlsplit(location).path.rstrip("/").rsplit("/", 1)[-1]
            state = self._error_state(request_id, resp, location=location)
            logger.warning(
                "payment request read failed location=%s status_code=%s error_code=%s",
                location,
                resp.status_code,
                state.errorCode,
            )
            return state

        state = PaymentRequestState.from_response(
            self._json(resp), location=location, status_code=resp.status_code
        )
        logger.info("payment request read id=%s status=%s", state.id, state.status)
        return state
