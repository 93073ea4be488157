"""
Unit tests for ConnectionUtils sends and sweeps.
"""

import asyncio
import json

import pytest
from unittest.mock import AsyncMock, MagicMock

from websockets.exceptions import ConnectionClosedOK
from websockets.frames import Close
from websockets.protocol import State

from sensor_relay.relay.server.process_messages import ConnectionUtils

from tests.conftest import sent_types


def closed_error():
    return ConnectionClosedOK(Close(1000, ""), Close(1000, ""), True)


class TestSends:
    """Test cases for best-effort sends."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_safe_send_serializes_dicts(self, connect, test_logger):
        conn = connect()

        assert await ConnectionUtils.safe_send(conn, {"type": "ack"}, test_logger) is True

        conn.websocket.send.assert_awaited_once_with(json.dumps({"type": "ack"}))

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_safe_send_swallows_closed_connection(self, connect, test_logger):
        conn = connect()
        conn.websocket.send.side_effect = closed_error()

        assert await ConnectionUtils.safe_send(conn, "hello", test_logger) is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_broadcast_isolates_failures(self, connect, test_logger):
        good, bad, other = connect(), connect(), connect()
        bad.websocket.send.side_effect = RuntimeError("socket exploded")

        delivered = await ConnectionUtils.broadcast(
            [good, bad, other], {"type": "spin", "data": {}}, test_logger
        )

        assert delivered == 2
        assert sent_types(good.websocket) == ["spin"]
        assert sent_types(other.websocket) == ["spin"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_broadcast_to_nobody(self, test_logger):
        assert await ConnectionUtils.broadcast([], {"type": "spin"}, test_logger) == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_close_connection_ignores_errors(self, connect, test_logger):
        conn = connect()
        conn.websocket.close.side_effect = RuntimeError("already gone")

        await ConnectionUtils.close_connection(conn, 1000, "bye", test_logger)

        conn.websocket.close.assert_awaited_once_with(1000, "bye")


class TestLivenessSweep:
    """Test cases for the ping sweep."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_ping_marks_pending_then_alive_on_pong(self, connect, relay_state, test_logger):
        conn = connect()
        pong = asyncio.get_running_loop().create_future()
        conn.websocket.ping = AsyncMock(return_value=pong)

        terminated = await ConnectionUtils.ping_connections(relay_state, test_logger)

        assert terminated == 0
        assert conn.is_alive is False
        pong.set_result(0.01)
        await asyncio.sleep(0)
        assert conn.is_alive is True

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missed_pong_terminates(self, connect, relay_state, test_logger):
        responsive, silent = connect(), connect()
        silent.is_alive = False

        terminated = await ConnectionUtils.ping_connections(relay_state, test_logger)

        assert terminated == 1
        silent.websocket.close.assert_awaited_once_with(1001, "ping timeout")
        silent.websocket.ping.assert_not_awaited()
        responsive.websocket.ping.assert_awaited_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_ping_does_not_raise(self, connect, relay_state, test_logger):
        conn = connect()
        conn.websocket.ping.side_effect = closed_error()

        assert await ConnectionUtils.ping_connections(relay_state, test_logger) == 0
        assert conn.is_alive is False


class TestStaleSweep:
    """Test cases for the closed-transport sweep."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_sweep_tears_down_closed_transports(self, router, connect, relay_state, test_logger):
        live, dead = connect(), connect()
        dead.websocket.state = State.CLOSED

        removed = await ConnectionUtils.sweep_closed(relay_state, router.disconnect, test_logger)

        assert removed == 1
        assert relay_state.connections.all() == [live]
        assert relay_state.stats.active_connections == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_sweep_with_nothing_stale(self, router, connect, relay_state, test_logger):
        connect()

        assert await ConnectionUtils.sweep_closed(relay_state, router.disconnect, test_logger) == 0


class TestStatusReporter:
    """Test cases for the periodic status report."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_report_logs_summary_and_counters(self, relay_state):
        logger = MagicMock()

        await ConnectionUtils.report_status(relay_state, logger)

        assert logger.info.call_count == 2
        assert logger.info.call_args_list[0].args[0].startswith("Status:")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_reporter_survives_failed_report(self, relay_state, monkeypatch):
        logger = MagicMock()
        calls = []

        async def flaky_report(state, log):
            calls.append(state)
            if len(calls) == 1:
                raise RuntimeError("stats unavailable")

        monkeypatch.setattr(ConnectionUtils, "report_status", flaky_report)
        task = asyncio.create_task(ConnectionUtils.status_reporter(relay_state, 0.001, logger))
        try:
            for _ in range(200):
                if len(calls) >= 2:
                    break
                await asyncio.sleep(0.005)

            assert len(calls) >= 2
            assert not task.done()
            logger.error.assert_called_once()
        finally:
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
