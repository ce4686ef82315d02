"""
Fail-fast guardrails for outbound HTTP: timeout, retry with exponential
backoff, circuit breaker and a safe fetch that turns every failure into a
Result value instead of an exception.
"""

from __future__ import annotations

import json
import logging
import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, TypeVar

import requests
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from shudenout.core.breaker import BreakerConfig
from shudenout.core.errors import (
    BreakerOpenError,
    ErrorKind,
    GuardrailError,
    SafeModeActive,
    UpstreamTimeout,
)
from shudenout.storage.breaker_registry import BreakerRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DEFAULT_EXECUTOR = ThreadPoolExecutor(max_workers=16, thread_name_prefix="guardrail")


@dataclass(frozen=True)
class Result:
    ok: bool
    data: Any = None
    error: Optional[str] = None
    code: Optional[int] = None
    kind: Optional[ErrorKind] = None

    @classmethod
    def success(cls, data: Any) -> "Result":
        return cls(ok=True, data=data)

    @classmethod
    def failure(
        cls, error: str, code: Optional[int] = None, kind: Optional[ErrorKind] = None
    ) -> "Result":
        return cls(ok=False, error=error, code=code, kind=kind)


@dataclass(frozen=True)
class FetchConfig:
    timeout_ms: int = 5000
    retries: int = 1
    base_delay_ms: int = 200
    breaker_name: Optional[str] = None
    breaker: BreakerConfig = field(default_factory=BreakerConfig)
    safe_mode: bool = False


def with_timeout(
    operation: Callable[[], T],
    timeout_ms: int,
    message: str = "Operation timed out",
    executor: Optional[ThreadPoolExecutor] = None,
) -> T:
    """
    Run operation on a worker thread and wait at most timeout_ms once it has
    started. Time spent queued for a free worker does not count. On timeout
    the worker is left to finish on its own; its result is dropped.
    """
    started = threading.Event()

    def run() -> T:
        started.set()
        return operation()

    future = (executor or _DEFAULT_EXECUTOR).submit(run)
    started.wait()
    try:
        return future.result(timeout=timeout_ms / 1000)
    except FutureTimeoutError:
        if not future.done():
            raise UpstreamTimeout(f"{message} ({timeout_ms}ms)") from None
        raise


class wait_jittered(wait_base):
    """Scale another wait strategy by a random factor in [1 - spread, 1 + spread]."""

    def __init__(self, wait: wait_base, spread: float = 0.1) -> None:
        self.wait = wait
        self.spread = spread

    def __call__(self, retry_state: RetryCallState) -> float:
        return self.wait(retry_state) * random.uniform(1 - self.spread, 1 + self.spread)


def retry_with_backoff(
    operation: Callable[[], T],
    tries: int,
    base_delay_ms: int,
    jitter: bool = True,
    sleep: Callable[[float], None] = time.sleep,
    before_sleep: Optional[Callable[[RetryCallState], None]] = None,
) -> T:
    """
    Call operation up to `tries` times. After failed attempt n the wait is
    base_delay_ms * 2 ** (n - 1), scaled by a random factor in [0.9, 1.1]
    when jitter is on. The last failure is re-raised. An open breaker is
    terminal and is never retried.
    """
    wait = wait_exponential(multiplier=base_delay_ms / 1000, exp_base=2)
    retrying = Retrying(
        stop=stop_after_attempt(max(1, tries)),
        wait=wait_jittered(wait) if jitter else wait,
        retry=retry_if_not_exception_type(BreakerOpenError),
        sleep=sleep,
        before_sleep=before_sleep,
        reraise=True,
    )
    return retrying(operation)


def safe_parse_json(text: str) -> Result:
    try:
        return Result.success(json.loads(text))
    except (TypeError, ValueError) as exc:
        return Result.failure(f"JSON parse error: {exc}", kind=ErrorKind.parse_error)


class Guardrail:
    """
    Safe fetch: safe mode -> breaker -> retry -> timeout -> requests.
    fetch() never raises; callers branch on Result.ok.
    """

    def __init__(
        self,
        registry: BreakerRegistry,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self.registry = registry
        self.session = session or requests.Session()
        self._sleep = sleep
        self._executor = executor

    def fetch(
        self,
        url: str,
        params: Optional[Dict[str, str]] = None,
        config: FetchConfig = FetchConfig(),
        headers: Optional[Dict[str, str]] = None,
    ) -> Result:
        if config.safe_mode:
            exc = SafeModeActive()
            logger.warning("Skipping %s: %s", url, exc.message)
            return Result.failure(exc.message, exc.code, exc.kind)

        timeout_message = f"Fetch timeout to {url}"

        def raw_call() -> requests.Response:
            try:
                return self.session.get(
                    url,
                    params=params,
                    headers=headers or {"Accept": "application/json"},
                    timeout=config.timeout_ms / 1000,
                )
            except requests.Timeout as exc:
                raise UpstreamTimeout(timeout_message, cause=exc) from exc

        def timed_call() -> requests.Response:
            return with_timeout(raw_call, config.timeout_ms, timeout_message, self._executor)

        def log_retry(retry_state: RetryCallState) -> None:
            exc = retry_state.outcome.exception() if retry_state.outcome else None
            logger.warning(
                "Retry %d/%d for %s: %s", retry_state.attempt_number, config.retries, url, exc
            )

        def retried_call() -> requests.Response:
            return retry_with_backoff(
                timed_call,
                tries=config.retries + 1,
                base_delay_ms=config.base_delay_ms,
                jitter=True,
                sleep=self._sleep,
                before_sleep=log_retry,
            )

        try:
            if config.breaker_name:
                breaker = self.registry.get(config.breaker_name, config.breaker)
                response = breaker.execute(retried_call)
            else:
                response = retried_call()
        except GuardrailError as exc:
            logger.warning("Safe fetch failed for %s: %s", url, exc.message)
            return Result.failure(exc.message, exc.code, exc.kind)
        except Exception as exc:  # noqa: BLE001
            message = str(exc) or exc.__class__.__name__
            logger.warning("Safe fetch failed for %s: %s", url, message)
            return Result.failure(message, 500, ErrorKind.server_error)
        return Result.success(response)
