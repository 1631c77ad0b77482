"""Slack notifications for newly found listings.

Messages use Block Kit through an Incoming Webhook. Long lists are split
into several messages so each stays within Slack's block and text limits;
posts go out one at a time through a RateLimiter.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

import httpx
import structlog

from rentwatch.scrapers.base import PropertyRecord
from rentwatch.scrapers.utils.rate_limiter import RateLimiter
from rentwatch.scrapers.utils.retry import RETRYABLE_HTTP_ERRORS, with_retry

logger = structlog.get_logger(__name__)

DEFAULT_MAX_ITEMS = 10
# Slack truncates messages well above this; the budget covers section text only
DEFAULT_MAX_CHARS = 3000
DETAIL_BUTTON_TEXT = "詳細を見る"


def format_property_text(index: int, record: PropertyRecord) -> str:
    """mrkdwn body of one listing section."""
    return (
        f"*{index}. {record.title}*\n"
        f"💰 {record.price}\n"
        f"📍 {record.address}\n"
        f"🏢 {record.layout} / {record.area}\n"
        f"🚉 {' / '.join(record.access)}"
    )


def property_section(index: int, record: PropertyRecord) -> Dict[str, Any]:
    """Section block with a link button to the listing."""
    return {
        "type": "section",
        "text": {"type": "mrkdwn", "text": format_property_text(index, record)},
        "accessory": {
            "type": "button",
            "text": {"type": "plain_text", "text": DETAIL_BUTTON_TEXT, "emoji": True},
            "url": record.url,
            "action_id": f"view_property_{record.id}",
        },
    }


def chunk_properties(
    records: Sequence[PropertyRecord],
    max_items: int = DEFAULT_MAX_ITEMS,
    max_chars: int = DEFAULT_MAX_CHARS,
) -> List[List[PropertyRecord]]:
    """Split records into message-sized groups.

    A group holds at most ``max_items`` records and, unless it holds a
    single record, at most ``max_chars`` characters of section text.
    """
    chunks: List[List[PropertyRecord]] = []
    current: List[PropertyRecord] = []
    current_chars = 0

    for record in records:
        size = len(format_property_text(len(current) + 1, record))
        if current and (len(current) >= max_items or current_chars + size > max_chars):
            chunks.append(current)
            current, current_chars = [], 0
            size = len(format_property_text(1, record))
        current.append(record)
        current_chars += size

    if current:
        chunks.append(current)
    return chunks


def build_message(
    chunk: Sequence[PropertyRecord], total: int, part: int = 1, parts: int = 1
) -> Dict[str, Any]:
    """Webhook payload for one chunk of a notification."""
    header = f"🏠 新着物件: {total}件"
    if parts > 1:
        header += f" ({part}/{parts})"

    blocks: List[Dict[str, Any]] = [
        {"type": "header", "text": {"type": "plain_text", "text": header, "emoji": True}},
        {"type": "divider"},
    ]
    for index, record in enumerate(chunk, start=1):
        if index > 1:
            blocks.append({"type": "divider"})
        blocks.append(property_section(index, record))

    return {"blocks": blocks, "text": f"新着物件が{total}件見つかりました！"}


class SlackNotifier:
    """Send new-listing notifications to a Slack Incoming Webhook.

    With an empty webhook URL the notifier runs in degraded mode: every
    call is a logged no-op.
    """

    def __init__(
        self,
        webhook_url: str = "",
        http_client: Optional[httpx.AsyncClient] = None,
        interval: float = 1.0,
        max_items: int = DEFAULT_MAX_ITEMS,
        max_chars: int = DEFAULT_MAX_CHARS,
        max_attempts: int = 3,
        retry_base_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the notifier.

        Args:
            webhook_url: Incoming Webhook URL; empty disables notifications
            http_client: Client used for posts (a per-call client otherwise)
            interval: Minimum seconds between two posts
            max_items: Listings per message
            max_chars: Approximate section text budget per message
            max_attempts: Attempts per post
            retry_base_delay: Wait after the first failed attempt
            sleep: Awaitable sleep function used for pacing and backoff
        """
        self.webhook_url = webhook_url
        self.http_client = http_client
        self.max_items = max_items
        self.max_chars = max_chars
        self.max_attempts = max_attempts
        self.retry_base_delay = retry_base_delay
        self._sleep = sleep
        self.rate_limiter = RateLimiter(interval, sleep=sleep)
        self.logger = logger.bind(service="slack_notifier")

        if not webhook_url:
            self.logger.warning("slack_webhook_not_configured")

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    async def _post(self, payload: Dict[str, Any]) -> None:
        if self.http_client is not None:
            response = await self.http_client.post(self.webhook_url, json=payload)
        else:
            async with httpx.AsyncClient(timeout=30) as client:
                response = await client.post(self.webhook_url, json=payload)
        response.raise_for_status()

    async def send(self, payload: Dict[str, Any]) -> None:
        """Post one payload, paced by the rate limiter and retried on HTTP errors."""
        await self.rate_limiter.execute(
            lambda: with_retry(
                lambda: self._post(payload),
                max_attempts=self.max_attempts,
                base_delay=self.retry_base_delay,
                retry_on=RETRYABLE_HTTP_ERRORS,
                sleep=self._sleep,
            )
        )

    async def notify_new_properties(self, records: Sequence[PropertyRecord]) -> int:
        """Notify about ``records``.

        Returns:
            Number of messages delivered (0 in degraded mode, for an empty
            list, or when every post failed)
        """
        if not self.enabled or not records:
            return 0

        chunks = chunk_properties(records, self.max_items, self.max_chars)
        delivered = 0
        for part, chunk in enumerate(chunks, start=1):
            payload = build_message(chunk, total=len(records), part=part, parts=len(chunks))
            try:
                await self.send(payload)
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                self.logger.error(
                    "slack_notification_failed",
                    part=part,
                    parts=len(chunks),
                    error=str(e),
                )
                continue
            delivered += 1

        self.logger.info(
            "slack_notification_sent",
            properties=len(records),
            messages=delivered,
            parts=len(chunks),
        )
        return delivered
