import asyncio
import json
import logging
import pytest
from slack_pack import main
from slack_pack.core.command_router import CommandRouter
from slack_pack.handlers.chat_update_command import (
    CHAT_UPDATE_COMMAND_NAME,
    CHAT_UPDATE_SUCCESS_EVENT_DEF,
    chat_update_command,
)


class FakeSlack:
    def __init__(self):
        self.calls = []

    async def update_message(self, channel_id, message_ts, text):
        self.calls.append((channel_id, message_ts, text))


class FakeContainer:
    def __init__(self):
        self.logger = logging.getLogger("SlackPackTest")
        self.events_queue = "slack_events"
        self.published = []

    async def safe_publish(self, routing_key: str, body: str, exchange_name: str = '') -> None:
        self.published.append((routing_key, json.loads(body)))


@pytest.fixture
def slack(monkeypatch):
    slack = FakeSlack()
    router = CommandRouter()
    router.register(chat_update_command(slack))
    monkeypatch.setattr(main, "router", router)
    return slack


def command_body(**overrides) -> str:
    body = {
        'type': CHAT_UPDATE_COMMAND_NAME,
        'version': 1,
        'correlation_id': "corr-7",
        'timestamp': "2024-01-01T00:00:00+00:00",
        'payload': {'text': "hi", 'messageTs': "123.45", 'channelId': "C1"},
    }
    body.update(overrides)
    return json.dumps(body)


def test_command_is_dispatched_and_event_published(slack):
    ctx = FakeContainer()

    asyncio.run(main.process_message_body(ctx, command_body()))

    assert slack.calls == [("C1", "123.45", "hi")]
    assert len(ctx.published) == 1
    routing_key, envelope = ctx.published[0]
    assert routing_key == "slack_events"
    assert envelope['type'] == CHAT_UPDATE_SUCCESS_EVENT_DEF.name
    assert envelope['correlation_id'] == "corr-7"
    assert envelope['payload'] == {'text': "hi", 'messageTs': "123.45", 'channelId': "C1"}


def test_missing_correlation_id_gets_a_new_one(slack):
    ctx = FakeContainer()

    asyncio.run(main.process_message_body(ctx, command_body(correlation_id="")))

    _, envelope = ctx.published[0]
    assert envelope['correlation_id']
    assert envelope['correlation_id'] != "corr-7"


def test_invalid_json_is_skipped(slack):
    ctx = FakeContainer()

    asyncio.run(main.process_message_body(ctx, "{not json"))

    assert ctx.published == []
    assert slack.calls == []


def test_unknown_command_is_skipped(slack):
    ctx = FakeContainer()

    asyncio.run(main.process_message_body(ctx, command_body(type="commands.slack.unknown")))

    assert ctx.published == []
    assert slack.calls == []


def test_malformed_payload_publishes_fatal_event(slack):
    ctx = FakeContainer()

    asyncio.run(main.process_message_body(ctx, command_body(payload="oops")))

    _, envelope = ctx.published[0]
    assert envelope['type'] == "FATAL"
    assert slack.calls == []


@pytest.mark.parametrize("overrides", [
    {'version': "v1"},
    {'version': None},
    {'type': ["commands.slack.chat-update"]},
    {'type': {'name': "x"}},
])
def test_malformed_envelope_fields_are_skipped(slack, overrides):
    ctx = FakeContainer()

    asyncio.run(main.process_message_body(ctx, command_body(**overrides)))

    assert ctx.published == []
    assert slack.calls == []


def test_consumer_keeps_going_after_malformed_envelope(slack):
    ctx = FakeContainer()

    asyncio.run(main.process_message_body(ctx, command_body(version="v1")))
    asyncio.run(main.process_message_body(ctx, command_body()))

    assert slack.calls == [("C1", "123.45", "hi")]
    assert len(ctx.published) == 1
