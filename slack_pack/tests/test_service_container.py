import asyncio
import pytest
from slack_pack.core.service_container import ServiceContainer


@pytest.fixture
def full_env(monkeypatch):
    monkeypatch.setenv("RABBITMQ_USER", "guest")
    monkeypatch.setenv("RABBITMQ_PASS", "guest")
    monkeypatch.setenv("RABBITMQ_HOST", "localhost")
    monkeypatch.setenv("RABBITMQ_PORT", "5672")
    monkeypatch.setenv("SLACK_TOKEN", "xoxb-test")
    return monkeypatch


@pytest.mark.parametrize("missing", [
    "RABBITMQ_USER", "RABBITMQ_PASS", "RABBITMQ_HOST", "RABBITMQ_PORT",
])
def test_create_requires_rabbitmq_settings(full_env, missing):
    full_env.delenv(missing)

    with pytest.raises(ValueError, match="Incomplete RabbitMQ configuration"):
        asyncio.run(ServiceContainer.create(log_name="SlackPackTest"))


def test_create_requires_slack_token(full_env):
    full_env.delenv("SLACK_TOKEN")

    with pytest.raises(ValueError, match="Incomplete Slack configuration"):
        asyncio.run(ServiceContainer.create(log_name="SlackPackTest"))


def test_queue_names_come_from_environment(monkeypatch):
    monkeypatch.setenv("SLACK_COMMANDS_QUEUE", "cmds")
    monkeypatch.delenv("SLACK_EVENTS_QUEUE", raising=False)

    ctx = ServiceContainer(logger=None)

    assert ctx.commands_queue == "cmds"
    assert ctx.events_queue == "slack_events"
