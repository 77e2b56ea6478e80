from collections import defaultdict
import logging
from typing import Dict, List, Optional
from slack_pack.core.command import FATAL_EVENT_DEF, Command, FatalInputError
from slack_pack.core.event_envelope import EventEnvelope


class CommandRouterError(Exception):
    """Base exception class for CommandRouter errors."""
    pass


class RouteNotFoundError(CommandRouterError):
    """Raised when no command is registered for a given name and version."""

    def __init__(self, command_name: str, version: int):
        super().__init__(
            f"No handler for command '{command_name}' version {version}")
        self.command_name = command_name
        self.version = version


class DuplicateCommandError(CommandRouterError):
    """Raised when a command name and version is registered twice."""

    def __init__(self, command_name: str, version: int):
        super().__init__(
            f"Command '{command_name}' version {version} is already registered")
        self.command_name = command_name
        self.version = version


class CommandRouter():
    """
    Holds the commands this service exposes and dispatches inbound command
    envelopes to them.

    Handlers get their dependencies through closures at registration time
    (see `chat_update_command`), so the router only ever passes the raw payload.
    Whatever the handler returns is wrapped into an outgoing envelope carrying
    the same correlation id.
    """

    logger: logging.Logger
    routes: Dict[str, Dict[int, Command]]

    def __init__(self):
        self.routes = defaultdict(dict)
        self.logger = logging.getLogger(__name__)

    def set_logger(self, logger: logging.Logger):
        """Must be called once the service container is available."""
        self.logger = logger
        self.logger.debug(f"Logger set to {logger}")

    def register(self, command: Command) -> Command:
        if not command.name:
            raise ValueError("Command must have a non-empty name.")

        if command.version in self.routes.get(command.name, {}):
            raise DuplicateCommandError(command.name, command.version)

        self.routes[command.name][command.version] = command
        return command

    def get_route(self, envelope: EventEnvelope) -> Optional[Command]:
        return self.routes.get(envelope.type, {}).get(envelope.version)

    def describe(self) -> Dict[str, List[str]]:
        """command name -> names of the events it may emit"""
        return {
            name: [event_def.name for event_def in command.output_events]
            for name, versions in self.routes.items()
            for command in versions.values()
        }

    async def dispatch(self, envelope: EventEnvelope) -> EventEnvelope:
        command = self.get_route(envelope)
        if not command:
            self.logger.warning(f"No handler registered for {envelope.type}")
            raise RouteNotFoundError(envelope.type, envelope.version)

        self.logger.info(f"Handling {envelope.type}")

        try:
            event = await command.handler(envelope.payload)
        except FatalInputError as e:
            self.logger.error("Command input could not be interpreted", extra={
                'command': command.name,
                'reason': str(e),
            })
            return EventEnvelope.create(type=FATAL_EVENT_DEF.name,
                                        correlation_id=envelope.correlation_id,
                                        version=envelope.version,
                                        payload={'reason': str(e)})

        if not command.declares(event.event_def):
            self.logger.warning("Command emitted an undeclared event", extra={
                'command': command.name,
                'event_type': event.event_def.name,
            })

        return EventEnvelope.create(type=event.event_def.name,
                                    correlation_id=envelope.correlation_id,
                                    version=envelope.version,
                                    payload=event.payload.to_dict())
