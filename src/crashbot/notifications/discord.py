"""Discord webhook notifications for the development team."""

import logging
from typing import Optional

import httpx

from ..issues.models import IssueRecord

logger = logging.getLogger(__name__)

# Discord rejects webhook content longer than this
MAX_CONTENT_LENGTH = 2000


async def send_discord(
    message: str,
    webhook_url: str,
    username: Optional[str] = "CrashBot",
    timeout: float = 10,
) -> None:
    """Post a message to a Discord webhook.

    Args:
        message: Message text (Discord markdown)
        webhook_url: Incoming webhook URL
        username: Display name override for the webhook
        timeout: Request timeout in seconds

    Raises:
        httpx.HTTPError: If the webhook call fails
    """
    payload = {"content": message[:MAX_CONTENT_LENGTH]}
    if username:
        payload["username"] = username

    async with httpx.AsyncClient(timeout=timeout) as client:
        response = await client.post(webhook_url, json=payload)
        response.raise_for_status()

    logger.info("Discord notification sent")


def format_new_issue(record: IssueRecord) -> str:
    """Format the announcement for a newly tracked resource issue."""
    lines = [
        f"**New resource issue:** `{record.resource_name}`",
        f"**Cause:** {record.cause}",
    ]
    if record.description:
        lines.append(record.description)
    lines.append("Status: pending. Mark it fixed once a patch is deployed.")
    return "\n".join(lines)


class DiscordNotifier:
    """Tells the dev team about newly tracked issues."""

    def __init__(self, webhook_url: str, timeout: float = 10):
        self.webhook_url = webhook_url
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    async def issue_created(self, record: IssueRecord) -> bool:
        """Announce a new issue. Returns True if the message was delivered.

        Delivery failures are logged, not raised; the issue is already
        recorded by the time this runs.
        """
        if not self.enabled:
            return False

        try:
            await send_discord(format_new_issue(record), self.webhook_url, timeout=self.timeout)
        except Exception as e:
            logger.warning(f"Failed to notify Discord about {record.resource_name}: {e}")
            return False
        return True
