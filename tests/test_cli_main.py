"""Tests for the CLI entry point."""

import json
from unittest.mock import AsyncMock, patch

from cli.main import build_arg_parser, main


def test_arg_parser_defaults():
    args = build_arg_parser().parse_args([])

    assert not args.debug
    assert args.channel is None


def test_main_runs_repl_with_channel_override(tmp_path):
    config_path = tmp_path / "config.json"
    channel = tmp_path / "chan"

    with patch("cli.main.repl_loop", new_callable=AsyncMock) as mock_repl:
        code = main(["--config", str(config_path), "--channel", str(channel)])

    assert code == 0
    config = mock_repl.await_args.args[0]
    assert config.get_channel_dir() == channel


def test_main_rejects_invalid_config(tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"chunk_size": 0}))

    with patch("cli.main.repl_loop", new_callable=AsyncMock) as mock_repl:
        code = main(["--config", str(config_path)])

    assert code == 2
    mock_repl.assert_not_called()
