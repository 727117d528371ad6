"""Command parser for CLI input."""

import shlex

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


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0]
    args = tokens[1:]

    if command_name == "send":
        return _parse_send(args)
    elif command_name == "poll":
        _expect_no_args(command_name, args)
        return PollCommand()
    elif command_name == "pending":
        _expect_no_args(command_name, args)
        return PendingCommand()
    elif command_name == "accept":
        return AcceptCommand(object_key=_single_arg(command_name, args, "object key"))
    elif command_name == "discard":
        return DiscardCommand(object_key=_single_arg(command_name, args, "object key"))
    elif command_name == "sweep":
        _expect_no_args(command_name, args)
        return SweepCommand()
    elif command_name == "config":
        return _parse_config(args)
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _parse_send(args: list[str]) -> SendCommand:
    """Parse 'send <file>' command."""
    return SendCommand(file_path=_single_arg("send", args, "file path"))


def _parse_config(args: list[str]) -> ConfigCommand:
    """Parse 'config' or 'config <key> <value>' command."""
    if not args:
        return ConfigCommand()
    if len(args) != 2:
        raise ParseError("config takes no arguments, or a key and a value")
    return ConfigCommand(key=args[0], value=args[1])


def _single_arg(command_name: str, args: list[str], what: str) -> str:
    if len(args) != 1:
        raise ParseError(f"{command_name} requires exactly one {what}")
    return args[0]


def _expect_no_args(command_name: str, args: list[str]) -> None:
    if args:
        raise ParseError(f"{command_name} takes no arguments")
