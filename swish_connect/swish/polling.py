"""Caller-side waiting for a payment request to settle.

SwishClient performs exactly one exchange per call. Code that wants to wait
for PAID/DECLINED/... opts in through `poll_until_terminal`.
"""
from __future__ import annotations

import logging

from ..errors import ConnectivityError
from ..utils.http import poll_policy
from .client import SwishClient
from .schemas import PaymentRequestState

logger = logging.getLogger(__name__)


async def poll_until_terminal(
    swish: SwishClient,
    location: str,
    max_attempts: int,
    interval_sec: float,
) -> PaymentRequestState:
    """
    Poll `location` until the state is terminal or `max_attempts` reads were made.

    Returns the last snapshot even if it is still non-terminal. ConnectivityError
    and non-2xx reads (e.g. a transient 503) are retried; only a status Swish
    reports in a 2xx body ends the loop early. If the final attempt raised, the
    error propagates. ProtocolError is raised immediately.
    """
    retrying = poll_policy(
        is_done=lambda state: state.is_terminal and not state.is_read_failure,
        retry_on=ConnectivityError,
        max_attempts=max_attempts,
        interval_sec=interval_sec,
    )
    state = await retrying(swish.get_payment_request, location)
    logger.info(
        "poll finished id=%s status=%s terminal=%s attempts=%s",
        state.id,
        state.status,
        state.is_terminal,
        retrying.statistics.get("attempt_number"),
    )
    return state
