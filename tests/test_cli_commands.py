"""Tests for CLI command handlers."""

import pytest
from unittest.mock import Mock
from cli.commands import (
    dispatch_command,
    handle_accept,
    handle_config,
    handle_discard,
    handle_pending,
    handle_poll,
    handle_send,
    handle_sweep,
)
from cli.models import (
    AcceptCommand,
    ConfigCommand,
    DiscardCommand,
    PendingCommand,
    PollCommand,
    SendCommand,
    SweepCommand,
)
from cli.session import ChannelSession


@pytest.mark.asyncio
async def test_handle_send():
    """Test send command handler with mocked session."""
    mock_session = Mock(spec=ChannelSession)
    mock_session.send_file.return_value = "Successfully uploaded 3 parts for video.mp4"

    cmd = SendCommand(file_path='video.mp4')
    result = await handle_send(cmd, session=mock_session)

    assert 'Successfully uploaded' in result
    mock_session.send_file.assert_awaited_once_with('video.mp4')


@pytest.mark.asyncio
async def test_handle_poll():
    """Test poll command handler with mocked session."""
    mock_session = Mock(spec=ChannelSession)
    mock_session.poll.return_value = "Delivered 3 chunk message(s)"

    result = await handle_poll(PollCommand(), session=mock_session)

    assert 'Delivered' in result
    mock_session.poll.assert_awaited_once()


@pytest.mark.asyncio
async def test_handle_pending():
    """Test pending command handler with mocked session."""
    mock_session = Mock(spec=ChannelSession)
    mock_session.pending.return_value = "No transfers in progress"

    result = await handle_pending(PendingCommand(), session=mock_session)

    assert result == "No transfers in progress"


@pytest.mark.asyncio
async def test_handle_accept():
    """Test accept command handler with mocked session."""
    mock_session = Mock(spec=ChannelSession)
    mock_session.accept.return_value = "Merged video.mp4"

    cmd = AcceptCommand(object_key='video.mp4:25:1')
    result = await handle_accept(cmd, session=mock_session)

    assert 'Merged' in result
    mock_session.accept.assert_awaited_once_with('video.mp4:25:1')


@pytest.mark.asyncio
async def test_handle_discard():
    """Test discard command handler with mocked session."""
    mock_session = Mock(spec=ChannelSession)
    mock_session.discard.return_value = "Discarded video.mp4:25:1"

    result = await handle_discard(DiscardCommand(object_key='video.mp4:25:1'), session=mock_session)

    assert 'Discarded' in result
    mock_session.discard.assert_called_once_with('video.mp4:25:1')


@pytest.mark.asyncio
async def test_handle_sweep():
    """Test sweep command handler with mocked session."""
    mock_session = Mock(spec=ChannelSession)
    mock_session.sweep.return_value = "Nothing to evict"

    result = await handle_sweep(SweepCommand(), session=mock_session)

    assert result == "Nothing to evict"


@pytest.mark.asyncio
async def test_handle_config_show():
    """Test config command without arguments shows configuration."""
    mock_session = Mock(spec=ChannelSession)
    mock_session.show_config.return_value = '{"chunk_size": 10}'

    result = await handle_config(ConfigCommand(), session=mock_session)

    assert 'chunk_size' in result
    mock_session.set_config.assert_not_called()


@pytest.mark.asyncio
async def test_handle_config_set():
    """Test config command with key and value sets the option."""
    mock_session = Mock(spec=ChannelSession)
    mock_session.set_config.return_value = "Set auto_merge = False"

    result = await handle_config(ConfigCommand(key='auto_merge', value='false'), session=mock_session)

    assert result.startswith('Set')
    mock_session.set_config.assert_called_once_with('auto_merge', 'false')


@pytest.mark.asyncio
async def test_dispatch_routes_by_type():
    """Test dispatch picks the handler for the command type."""
    mock_session = Mock(spec=ChannelSession)
    mock_session.sweep.return_value = "Evicted 1 stale transfer(s): a:1:1"

    result = await dispatch_command(SweepCommand(), mock_session)

    assert result.startswith('Evicted')


@pytest.mark.asyncio
async def test_dispatch_unknown_type():
    """Test dispatch of an object that is not a command."""
    result = await dispatch_command(object(), Mock(spec=ChannelSession))

    assert 'Unknown command type' in result
