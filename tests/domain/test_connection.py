"""Tests for the connection state value."""

from ariasync.domain.connection import ConnectionState, ConnectionStatus


def test_initial_state_is_disconnected():
    state = ConnectionState()
    assert state.status == ConnectionStatus.DISCONNECTED
    assert not state.is_connected
    assert not state.is_failed


def test_failed_carries_reason():
    state = ConnectionState.failed("Connection refused")
    assert state.is_failed
    assert state.reason == "Connection refused"
    assert str(state) == "failed(Connection refused)"


def test_equality_by_value():
    assert ConnectionState.connected() == ConnectionState.connected()
    assert ConnectionState.failed("a") != ConnectionState.failed("b")
    assert str(ConnectionState.connecting()) == "connecting"
