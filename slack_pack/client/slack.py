import logging
from typing import Protocol
import aiohttp

logger = logging.getLogger("SlackPack")

SLACK_API_URL = "https://slack.com/api"


class SlackApiError(Exception):
    """Raised when the Slack Web API rejects a call. The message is Slack's error text."""

    def __init__(self, method: str, error: str):
        super().__init__(error)
        self.method = method
        self.error = error


class SlackBackend(Protocol):
    async def update_message(self, channel_id: str, message_ts: str, text: str) -> None: ...


class SlackWebClient:
    """Minimal Slack Web API client. One instance is shared by all handlers."""

    def __init__(self, token: str, session: aiohttp.ClientSession, base_url: str = SLACK_API_URL):
        self.token = token
        self.session = session
        self.base_url = base_url.rstrip('/')

    async def update_message(self, channel_id: str, message_ts: str, text: str) -> None:
        await self._call("chat.update", {
            'channel': channel_id,
            'ts': message_ts,
            'text': text,
        })

    async def _call(self, method: str, body: dict) -> dict:
        headers = {
            'Authorization': f"Bearer {self.token}",
            'Content-Type': "application/json; charset=utf-8",
        }

        async with self.session.post(f"{self.base_url}/{method}", json=body, headers=headers) as resp:
            if resp.status != 200:
                raise SlackApiError(method, f"unexpected status {resp.status}")
            data = await resp.json()

        if not data.get('ok'):
            raise SlackApiError(method, data.get('error', 'unknown_error'))

        logger.debug(f"Slack call {method} succeeded")
        return data
