"""2Captcha client: submit a challenge, then poll until a token is ready."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from jobdash.core.config import Settings
from jobdash.core.exceptions import (
    ConfigurationError,
    PollError,
    PollTimeoutError,
    SubmitError,
    TrackerError,
    UnexpectedError,
    ValidationError,
)
from jobdash.schemas.captcha import CaptchaResult

logger = logging.getLogger(__name__)

NOT_READY = "CAPCHA_NOT_READY"
REQUIRED_FIELDS = frozenset({"status", "request"})

INITIAL_POLL_INTERVALS = (5.0, 10.0, 15.0, 15.0, 15.0, 15.0, 15.0, 15.0)
STEADY_POLL_INTERVAL = 15.0
DEFAULT_BUDGET = 120.0

# challenge type -> (method, site key parameter name)
SUBMIT_METHODS = {
    "recaptcha_v2": ("userrecaptcha", "googlekey"),
    "hcaptcha": ("hcaptcha", "sitekey"),
}


def poll_intervals() -> Iterator[float]:
    """Yield the wait before each poll: the initial schedule, then a fixed cadence."""
    yield from INITIAL_POLL_INTERVALS
    while True:
        yield STEADY_POLL_INTERVAL


class ActivityLog(Protocol):
    """Anything that can append to the activity log."""

    async def add_log(
        self, level: str, message: str, details: dict[str, Any] | None = None
    ) -> Any: ...


@dataclass
class CaptchaTask:
    """A challenge accepted by the solving service."""

    task_id: str
    captcha_type: str
    site_key: str
    page_url: str
    submitted_at: float


class CaptchaResolver:
    """Client for the 2Captcha in.php/res.php protocol.

    ``solve`` never raises for expected failures: configuration, submit, poll,
    timeout and unexpected (network/parse) errors are all returned as a
    ``CaptchaResult``. No state is kept between calls.
    """

    IN_URL = "https://2captcha.com/in.php"
    RES_URL = "https://2captcha.com/res.php"

    def __init__(
        self,
        api_key: str | None,
        activity_log: ActivityLog | None = None,
        *,
        in_url: str | None = None,
        res_url: str | None = None,
        budget: float = DEFAULT_BUDGET,
        request_timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api_key = api_key
        self.activity_log = activity_log
        self.in_url = in_url or self.IN_URL
        self.res_url = res_url or self.RES_URL
        self.budget = budget
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(request_timeout),
            headers={"Accept": "application/json"},
        )
        self._owns_client = client is None
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_settings(
        cls, settings: Settings, activity_log: ActivityLog | None = None, **kwargs
    ) -> "CaptchaResolver":
        return cls(
            settings.twocaptcha_api_key,
            activity_log,
            in_url=settings.captcha_in_url,
            res_url=settings.captcha_res_url,
            budget=settings.captcha_timeout_seconds,
            request_timeout=settings.captcha_request_timeout,
            **kwargs,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the HTTP client if this resolver created it."""
        if self._owns_client:
            await self.client.aclose()

    async def solve(self, captcha_type: str, site_key: str, page_url: str) -> CaptchaResult:
        """Submit a challenge and wait for its solution token."""
        details = {"type": captcha_type, "siteKey": site_key, "pageUrl": page_url}

        if not self.is_configured:
            error = ConfigurationError("TWOCAPTCHA_API_KEY not configured")
            logger.warning(error.message)
            await self._log("error", f"CAPTCHA solving skipped: {error.message}", details)
            return CaptchaResult.failed(error)

        if captcha_type not in SUBMIT_METHODS:
            error = ValidationError(f"Unsupported CAPTCHA type: {captcha_type}")
            await self._log("error", f"CAPTCHA solving failed: {error.message}", details)
            return CaptchaResult.failed(error)

        await self._log(
            "info",
            f"Attempting to solve {captcha_type} CAPTCHA",
            {"siteKey": site_key, "pageUrl": page_url},
        )

        try:
            task = await self._submit(captcha_type, site_key, page_url)
            await self._log(
                "info", f"CAPTCHA submitted to 2Captcha, task ID: {task.task_id}"
            )
            token = await self._poll(task)
        except TrackerError as e:
            logger.error(f"CAPTCHA solving failed ({e.kind}): {e.message}")
            await self._log(
                "error",
                f"CAPTCHA solving failed: {e.message}",
                {**details, "error_kind": e.kind},
            )
            return CaptchaResult.failed(e)

        logger.info(f"{captcha_type} CAPTCHA solved for {page_url}")
        await self._log("info", "CAPTCHA solved successfully")
        return CaptchaResult.ok(token)

    async def _submit(self, captcha_type: str, site_key: str, page_url: str) -> CaptchaTask:
        method, key_param = SUBMIT_METHODS[captcha_type]
        params = {
            "key": self.api_key,
            "json": "1",
            "method": method,
            key_param: site_key,
            "pageurl": page_url,
        }
        payload = await self._request(self.in_url, params)

        if payload.get("status") != 1:
            raise SubmitError(str(payload.get("request", "")))

        return CaptchaTask(
            task_id=str(payload["request"]),
            captcha_type=captcha_type,
            site_key=site_key,
            page_url=page_url,
            submitted_at=self._clock(),
        )

    async def _poll(self, task: CaptchaTask) -> str:
        params = {
            "key": self.api_key,
            "action": "get",
            "id": task.task_id,
            "json": "1",
        }

        for attempt, wait in enumerate(poll_intervals(), start=1):
            await self._sleep(wait)

            elapsed = self._clock() - task.submitted_at
            if elapsed >= self.budget:
                raise PollTimeoutError(self.budget)

            payload = await self._request(self.res_url, params)
            if payload.get("status") == 1:
                return str(payload["request"])

            error_token = str(payload.get("request", ""))
            if error_token != NOT_READY:
                raise PollError(error_token)

            logger.debug(
                f"Task {task.task_id} not ready after poll {attempt} ({elapsed:.1f}s)"
            )

    async def _request(self, url: str, params: dict[str, str]) -> dict:
        try:
            response = await self.client.get(url, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            raise UnexpectedError(f"Network error: {e}", e) from e
        except ValueError as e:
            raise UnexpectedError(f"Invalid JSON from solving service: {e}", e) from e

        if not isinstance(payload, dict) or not REQUIRED_FIELDS.issubset(payload):
            raise UnexpectedError(
                f"Unexpected response from solving service: {response.text[:200]}"
            )
        return payload

    async def _log(
        self, level: str, message: str, details: dict[str, Any] | None = None
    ) -> None:
        if self.activity_log is None:
            return
        try:
            await self.activity_log.add_log(level, message, details)
        except Exception:
            logger.exception(f"Failed to write activity log entry: {message}")
