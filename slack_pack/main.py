import asyncio
import json
import uuid
from slack_pack.core.command_router import CommandRouter
from slack_pack.core.event_envelope import EventEnvelope
from slack_pack.core.logger import set_correlation_id
from slack_pack.core.service_container import ServiceContainer
from slack_pack.handlers.chat_update_command import chat_update_command


router = CommandRouter()


async def process_message_body(ctx: ServiceContainer, body_str: str) -> None:
    try:
        body = json.loads(body_str)
    except json.JSONDecodeError:
        ctx.logger.error("Invalid JSON in message")
        return

    if not isinstance(body, dict):
        ctx.logger.error("Message is not an event envelope", extra={
            'body_type': type(body).__name__,
        })
        return

    correlation_id: str = body.get('correlation_id', '')
    if not correlation_id:
        correlation_id = str(uuid.uuid4())
        body['correlation_id'] = correlation_id
        set_correlation_id(correlation_id)
        ctx.logger.warning("Missing correlation_id in command envelope, assigned a new one")
    else:
        set_correlation_id(correlation_id)

    try:
        envelope = EventEnvelope.from_dict(body)
        if not isinstance(envelope.type, str):
            raise TypeError(
                f"envelope type must be a string, got {type(envelope.type).__name__}")
    except (TypeError, ValueError) as e:
        ctx.logger.error("Malformed command envelope", extra={
            'error': str(e),
        })
        return

    if not router.get_route(envelope=envelope):
        ctx.logger.warning(
            "Unknown command received.",
            extra={"event_type": envelope.type, "version": envelope.version}
        )
        return

    result = await router.dispatch(envelope=envelope)
    await ctx.safe_publish(
        routing_key=ctx.events_queue, body=result.to_json(), exchange_name=''
    )
    ctx.logger.info("Command handled", extra={
        'command': envelope.type,
        'event_type': result.type,
    })


async def command_processor(ctx: ServiceContainer) -> None:
    channel = await ctx.connection.channel()

    queue = await channel.declare_queue(
        name=ctx.commands_queue,
        auto_delete=False
    )
    await channel.declare_queue(name=ctx.events_queue, auto_delete=False)

    async with queue.iterator() as queue_iter:
        async for message in queue_iter:
            async with message.process():
                await process_message_body(ctx=ctx, body_str=message.body.decode(errors="replace"))


async def main() -> None:
    ctx = await ServiceContainer.create(log_name="SlackPack")

    try:
        ctx.logger.info("SlackPack Service started!")

        router.set_logger(ctx.logger)
        router.register(chat_update_command(ctx.slack))

        ctx.logger.info("Commands registered", extra={
            'commands': router.describe(),
        })

        await command_processor(ctx=ctx)
    finally:
        await ctx.close()


if __name__ == '__main__':
    asyncio.run(main())
