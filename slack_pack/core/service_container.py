import aio_pika
import aiohttp
import os
import logging
from typing import Optional
from aio_pika.abc import AbstractRobustConnection, AbstractRobustChannel
from slack_pack.client.slack import SLACK_API_URL, SlackWebClient
from slack_pack.core.logger import get_logger


class ServiceContainer:
    logger: logging.Logger
    connection: Optional[AbstractRobustConnection]
    channel: Optional[AbstractRobustChannel]
    http: Optional[aiohttp.ClientSession]
    slack: Optional[SlackWebClient]
    commands_queue: str
    events_queue: str

    def __init__(self, logger: logging.Logger) -> None:
        self.logger = logger
        self.connection = None
        self.channel = None
        self.http = None
        self.slack = None
        self.rabbitmq_url = ""
        self.commands_queue = os.environ.get(
            "SLACK_COMMANDS_QUEUE", "slack_commands")
        self.events_queue = os.environ.get(
            "SLACK_EVENTS_QUEUE", "slack_events")

    async def connect(self) -> None:
        self.connection = await aio_pika.connect_robust(self.rabbitmq_url)
        self.channel = await self.connection.channel()
        self.logger.info("Connected to RabbitMQ")

    async def safe_publish(self, routing_key: str, body: str, exchange_name: str = '') -> None:
        if (self.connection is None or self.connection.is_closed or
                self.channel is None or self.channel.is_closed):
            self.logger.warning(
                "Connection or channel closed, reconnecting...")
            await self.connect()

        exchange: aio_pika.Exchange
        if exchange_name:
            exchange = await self.channel.get_exchange(exchange_name)
        else:
            exchange = self.channel.default_exchange  # type: ignore

        await exchange.publish(
            aio_pika.Message(body=body.encode()),
            routing_key=routing_key
        )
        self.logger.info(f"Published message to {routing_key}")

    async def close(self) -> None:
        if self.http and not self.http.closed:
            await self.http.close()
        if self.channel and not self.channel.is_closed:
            await self.channel.close()
        if self.connection and not self.connection.is_closed:
            await self.connection.close()
        self.logger.info("Closed RabbitMQ connection")

    @classmethod
    async def create(cls, log_level: Optional[int] = None, log_name="SlackPack") -> "ServiceContainer":
        if log_level is None:
            log_level = logging.getLevelName(
                os.environ.get("LOG_LEVEL", "INFO").upper())
            if not isinstance(log_level, int):
                log_level = logging.INFO

        logger = get_logger(name=log_name, level=log_level)
        self = cls(logger)

        # --- RabbitMQ Setup ---
        rabbitmq_user = os.environ.get("RABBITMQ_USER")
        rabbitmq_pass = os.environ.get("RABBITMQ_PASS")
        rabbitmq_host = os.environ.get("RABBITMQ_HOST")
        rabbitmq_port = os.environ.get("RABBITMQ_PORT")
        rabbitmq_vhost = os.environ.get("RABBITMQ_VHOST", "/")

        if not all([rabbitmq_user, rabbitmq_pass, rabbitmq_host, rabbitmq_port]):
            logger.error(
                "Missing one or more required RabbitMQ environment variables")
            raise ValueError("Incomplete RabbitMQ configuration")

        # --- Slack Setup ---
        slack_token = os.environ.get("SLACK_TOKEN")
        slack_api_url = os.environ.get("SLACK_API_URL", SLACK_API_URL)

        if not slack_token:
            logger.error("Missing SLACK_TOKEN environment variable")
            raise ValueError("Incomplete Slack configuration")

        self.rabbitmq_url = f"amqp://{rabbitmq_user}:{rabbitmq_pass}@{rabbitmq_host}:{rabbitmq_port}{rabbitmq_vhost}"
        logger.info(
            f"Connecting to RabbitMQ: amqp://{rabbitmq_user}:***@{rabbitmq_host}:{rabbitmq_port}{rabbitmq_vhost}")
        await self.connect()

        self.http = aiohttp.ClientSession()
        self.slack = SlackWebClient(
            token=slack_token, session=self.http, base_url=slack_api_url)
        logger.info(f"Slack client ready for {slack_api_url}")

        return self
