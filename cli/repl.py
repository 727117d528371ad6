"""REPL with prompt_toolkit for user interaction."""

import os
import sys

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout

from cli.commands import dispatch_command
from cli.constants import (
    COMMANDS,
    HELP_TEXT,
    LOGO,
    PROMPT_TEXT,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
)
from cli.parser import ParseError, parse_command
from cli.session import ChannelSession
from common.config import TransferConfig


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    if sys.platform == "win32":
        os.system("cls")
    else:
        os.system("clear")


def show_welcome() -> None:
    print(LOGO)
    print(WELCOME_TITLE)
    print(WELCOME_HELP)


async def repl_loop(config: TransferConfig) -> None:
    """
    Start interactive REPL with prompt_toolkit.

    The eviction sweeper runs on the same event loop while the prompt waits
    for input.
    """
    channel = ChannelSession(config)
    completer = WordCompleter(COMMANDS, ignore_case=True)
    prompt: PromptSession = PromptSession(
        completer=completer, history=InMemoryHistory(), style=STYLE
    )

    clear_screen()
    show_welcome()

    await channel.start()
    try:
        with patch_stdout():
            while True:
                try:
                    user_input = await prompt.prompt_async([("class:prompt", PROMPT_TEXT)])
                    line = user_input.strip()

                    if not line:
                        continue

                    if line == "exit":
                        print("Goodbye!")
                        break

                    if line == "help":
                        print(HELP_TEXT)
                        continue

                    if line == "clear":
                        clear_screen()
                        show_welcome()
                        continue

                    cmd_obj = parse_command(user_input)
                    result = await dispatch_command(cmd_obj, channel)
                    print(result)

                except ParseError as e:
                    print(f"Error: {e}")
                except KeyboardInterrupt:
                    continue
                except EOFError:
                    print("\nGoodbye!")
                    break
    finally:
        await channel.close()
