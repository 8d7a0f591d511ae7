"""Telegram Bot API notifications for settlement scorecards."""

from __future__ import annotations

import logging

import httpx
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from goal_edge.config import get_settings
from goal_edge.signals.formatters import format_telegram_scorecard
from goal_edge.signals.settlement import SettlementResult
from goal_edge.signals.stats import HitRateStats

logger = logging.getLogger(__name__)

_TELEGRAM_API_URL = "https://api.telegram.org"


def _is_retryable(exc: BaseException) -> bool:
    """Retry on transient HTTP errors and timeouts."""
    if isinstance(exc, httpx.TimeoutException):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in (429, 500, 502, 503, 504)
    return False


_retry_decorator = retry(
    retry=retry_if_exception(_is_retryable),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    reraise=True,
)


class TelegramNotifier:
    """Send settlement scorecards via the Telegram Bot API.

    All errors are logged but never raised: notifications must not break a
    settlement sweep.
    """

    def __init__(
        self,
        bot_token: str | None = None,
        chat_id: str | None = None,
    ) -> None:
        settings = get_settings()
        self._bot_token = bot_token or settings.telegram_bot_token
        self._chat_id = chat_id or settings.telegram_chat_id
        self._timeout = settings.http_timeout
        self._client: httpx.AsyncClient | None = None

    @property
    def _enabled(self) -> bool:
        return bool(self._bot_token and self._chat_id)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=_TELEGRAM_API_URL,
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    @_retry_decorator
    async def _post(self, url: str, payload: dict) -> httpx.Response:
        resp = await self._get_client().post(url, json=payload)
        resp.raise_for_status()
        return resp

    async def send_message(self, text: str, parse_mode: str = "Markdown") -> bool:
        """Send a message. Returns True if it was sent successfully."""
        if not self._enabled:
            logger.debug("Telegram not configured, skipping message")
            return False

        try:
            await self._post(
                f"/bot{self._bot_token}/sendMessage",
                {"chat_id": self._chat_id, "text": text, "parse_mode": parse_mode},
            )
            return True
        except Exception:
            logger.warning("Failed to send Telegram message", exc_info=True)
            return False

    async def notify_settlement(self, result: SettlementResult, stats: HitRateStats) -> bool:
        """Send a scorecard for a sweep that settled at least one signal."""
        if not result.changed:
            return False
        sent = await self.send_message(format_telegram_scorecard(result, stats))
        if sent:
            logger.info("Telegram: sent scorecard for %d signal(s)", len(result.newly_settled))
        return sent

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
