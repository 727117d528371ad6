"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = ["send", "poll", "pending", "accept", "discard", "sweep", "config", "clear", "exit", "help"]

STYLE = Style.from_dict(
    {
        "prompt": "#35A7F4 bold",
        "command": "#0088ff bold",
    }
)

BLUE = "\033[38;2;53;167;244m"
GREEN = "\033[32m"
RESET = "\033[0m"

LOGO = f"""{BLUE}
  ┌─┐┬ ┬┬ ┬┌┐┌┬┌─  ┬─┐┌─┐┬  ┌─┐┬ ┬
  │  ├─┤│ ││││├┴┐  ├┬┘├┤ │  ├─┤└┬┘
  └─┘┴ ┴└─┘┘└┘┴ ┴  ┴└─└─┘┴─┘┴ ┴ ┴
{RESET}"""

WELCOME_TITLE = "chunkrelay - send large files over size-limited channels"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "chunkrelay> "

HELP_TEXT = """Available commands:
  send <file>              Split a file and send its chunks to the channel
  poll                     Deliver new channel messages and reassemble finished transfers
  pending                  Show incomplete transfers held in the assembly cache
  accept <object-key>      Merge a completed transfer awaiting confirmation (auto_merge off)
  discard <object-key>     Drop a completed transfer awaiting confirmation
  sweep                    Evict transfers idle longer than the expiry window now
  config [key value]       Show configuration or change one option
  clear                    Clear screen and redisplay welcome message
  help                     Show this help
  exit                     Exit REPL

Examples:
  send ~/videos/talk.mp4
  poll
  config chunk_size 8000000"""
