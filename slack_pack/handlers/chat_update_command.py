from dataclasses import dataclass
import json
import logging
from time import time
from typing import Any, List, Mapping
import humanize
from slack_pack.client.slack import SlackBackend
from slack_pack.core.command import Command, Event, EventDef, FatalInputError

logger = logging.getLogger("SlackPack")

CHAT_UPDATE_COMMAND_NAME = "commands.slack.chat-update"

CHAT_UPDATE_SUCCESS_EVENT_DEF = EventDef(
    name="events.slack.chat-update.success")
CHAT_UPDATE_FAIL_EVENT_DEF = EventDef(
    name="events.slack.chat-update.failed")

# attribute name -> wire key, in the order violations are reported
WIRE_FIELDS = (
    ("text", "text"),
    ("message_ts", "messageTs"),
    ("channel_id", "channelId"),
)


class InputValidationError(ValueError):
    """Well-formed input with missing fields. Carries every violation found."""

    def __init__(self, violations: List[str]):
        super().__init__(", ".join(violations))
        self.violations = list(violations)


@dataclass(frozen=True)
class ChatUpdateInput:
    text: str = ""
    message_ts: str = ""  # opaque Slack message timestamp, e.g. "1712345678.000200"
    channel_id: str = ""

    @staticmethod
    def decode(raw: Any) -> "ChatUpdateInput":
        """
        Decodes raw command input (JSON bytes/str or an already parsed mapping).

        Unknown keys are ignored and missing or null keys become empty strings,
        leaving it to `validate` to report them. A null document is an empty
        request. Anything else that is not a JSON object with string values
        raises FatalInputError.
        """
        if isinstance(raw, (bytes, bytearray, str)):
            try:
                raw = json.loads(raw)
            except ValueError as e:
                raise FatalInputError(f"input is not valid: {e}") from e

        # a null document decodes to an empty request
        if raw is None:
            raw = {}

        if not isinstance(raw, Mapping):
            raise FatalInputError(
                f"input is not valid: expected a JSON object, got {type(raw).__name__}")

        values = {}
        for attr, key in WIRE_FIELDS:
            value = raw.get(key)
            if value is None:
                value = ""
            if not isinstance(value, str):
                raise FatalInputError(
                    f"input is not valid: field '{key}' must be a string, got {type(value).__name__}")
            values[attr] = value

        return ChatUpdateInput(**values)

    def violations(self) -> List[str]:
        errs = []
        if not self.text:
            errs.append("missing text field")
        if not self.channel_id:
            errs.append("missing channel id field")
        if not self.message_ts:
            errs.append("missing message timestamp field")
        return errs

    def validate(self) -> None:
        errs = self.violations()
        if errs:
            raise InputValidationError(errs)

    def to_dict(self) -> dict:
        return {key: getattr(self, attr) for attr, key in WIRE_FIELDS}


@dataclass(frozen=True)
class ChatUpdateSuccess:
    request: ChatUpdateInput

    def to_dict(self) -> dict:
        return self.request.to_dict()


@dataclass(frozen=True)
class ChatUpdateFail:
    request: ChatUpdateInput
    reason: str

    def to_dict(self) -> dict:
        return {**self.request.to_dict(), 'reason': self.reason}


def chat_update_success_event(request: ChatUpdateInput) -> Event:
    return Event(event_def=CHAT_UPDATE_SUCCESS_EVENT_DEF,
                 payload=ChatUpdateSuccess(request=request))


def chat_update_fail_event(request: ChatUpdateInput, reason: str) -> Event:
    return Event(event_def=CHAT_UPDATE_FAIL_EVENT_DEF,
                 payload=ChatUpdateFail(request=request, reason=reason))


def human_elapsed(elapsed_seconds: float) -> str:
    if elapsed_seconds < 1:
        return f"{elapsed_seconds * 1000:.2f} ms"
    return humanize.precisedelta(elapsed_seconds, format="%.5f")


def chat_update_handler(slack: SlackBackend):

    async def handle(raw_input: Any) -> Event:
        request = ChatUpdateInput.decode(raw_input)

        try:
            request.validate()
        except InputValidationError as e:
            logger.warning("Chat update request rejected", extra={
                'reason': str(e),
                'violations': e.violations,
            })
            return chat_update_fail_event(request, str(e))

        start_unix = time()
        try:
            await slack.update_message(request.channel_id, request.message_ts, request.text)
        except Exception as e:
            logger.warning("Slack message update failed", extra={
                'channel_id': request.channel_id,
                'message_ts': request.message_ts,
                'error': str(e),
            })
            return chat_update_fail_event(request, str(e))

        logger.info("Slack message updated", extra={
            'channel_id': request.channel_id,
            'message_ts': request.message_ts,
            'elapsed_human': human_elapsed(time() - start_unix),
        })
        return chat_update_success_event(request)

    return handle


def chat_update_command(slack: SlackBackend) -> Command:
    return Command(
        name=CHAT_UPDATE_COMMAND_NAME,
        output_events=[CHAT_UPDATE_SUCCESS_EVENT_DEF,
                       CHAT_UPDATE_FAIL_EVENT_DEF],
        handler=chat_update_handler(slack),
    )
