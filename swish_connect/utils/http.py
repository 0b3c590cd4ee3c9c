import ssl
from typing import Callable, Optional, Union

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)

def client(
    verify: Union[ssl.SSLContext, bool] = True,
    timeout_sec: Optional[float] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    # timeout_sec=None disables httpx timeouts; callers bound the exchange themselves
    return httpx.AsyncClient(verify=verify, timeout=timeout_sec, transport=transport)

def poll_policy(
    is_done: Callable[[object], bool],
    retry_on: type[BaseException],
    max_attempts: int,
    interval_sec: float,
) -> AsyncRetrying:
    """
    Re-run a call until `is_done(result)` or attempts run out.
    On exhaustion the last result is returned, or the last exception re-raised.
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_fixed(interval_sec),
        retry=retry_if_result(lambda r: not is_done(r)) | retry_if_exception_type(retry_on),
        retry_error_callback=lambda state: state.outcome.result(),
    )
