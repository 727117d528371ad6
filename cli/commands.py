"""Command handler functions for CLI operations."""

from cli.models import (
    AcceptCommand,
    CommandRequest,
    ConfigCommand,
    DiscardCommand,
    PendingCommand,
    PollCommand,
    SendCommand,
    SweepCommand,
)
from cli.session import ChannelSession
from common.logging_config import get_logger

logger = get_logger(__name__)


async def handle_send(cmd: SendCommand, session: ChannelSession) -> str:
    """
    Handle 'send' command.

    Args:
        cmd: SendCommand with file_path
        session: Channel session

    Returns:
        Success or error message
    """
    logger.info(f"Executing send command: file={cmd.file_path}")
    result = await session.send_file(cmd.file_path)
    logger.debug("Send command completed")
    return result


async def handle_poll(cmd: PollCommand, session: ChannelSession) -> str:
    """Handle 'poll' command."""
    return await session.poll()


async def handle_pending(cmd: PendingCommand, session: ChannelSession) -> str:
    """Handle 'pending' command."""
    return session.pending()


async def handle_accept(cmd: AcceptCommand, session: ChannelSession) -> str:
    """Handle 'accept' command."""
    logger.info(f"Executing accept command: key={cmd.object_key}")
    return await session.accept(cmd.object_key)


async def handle_discard(cmd: DiscardCommand, session: ChannelSession) -> str:
    """Handle 'discard' command."""
    return session.discard(cmd.object_key)


async def handle_sweep(cmd: SweepCommand, session: ChannelSession) -> str:
    """Handle 'sweep' command."""
    return await session.sweep()


async def handle_config(cmd: ConfigCommand, session: ChannelSession) -> str:
    """
    Handle 'config' command.

    Shows the configuration when called without arguments, otherwise sets
    one option (the value is parsed as JSON when possible).
    """
    if cmd.key is None:
        return session.show_config()
    return session.set_config(cmd.key, cmd.value)


HANDLERS = {
    SendCommand: handle_send,
    PollCommand: handle_poll,
    PendingCommand: handle_pending,
    AcceptCommand: handle_accept,
    DiscardCommand: handle_discard,
    SweepCommand: handle_sweep,
    ConfigCommand: handle_config,
}


async def dispatch_command(cmd: CommandRequest, session: ChannelSession) -> str:
    """Dispatch a parsed command to its handler."""
    handler = HANDLERS.get(type(cmd))
    if handler is None:
        return f"Unknown command type: {type(cmd)}"
    return await handler(cmd, session)
