"""Tests for replication snapshots."""
import json

import pytest
from tick_state import SnapshotError, StateMachine, StateRegistry, TickClock


def build(name, clock, registry=None, log=None):
    log = log if log is not None else []
    machine = StateMachine(name, registry=registry if registry is not None else StateRegistry(), clock=clock.now)
    machine.add_state("Idle", started=lambda ctx: log.append("Idle.started"))
    machine.add_state(
        "Walking", 5,
        started=lambda ctx: log.append("Walking.started"),
        completed=lambda ctx: log.append("Walking.completed") or "Idle",
    )
    return machine


class TestSnapshot:
    """Test cases for snapshot / restore."""

    def test_snapshot_contents(self):
        clock = TickClock(tps=10)
        machine = build("Agent", clock)
        machine.change_state("Walking")
        clock.advance(20)

        data = machine.snapshot()

        assert data == {"version": 1, "name": "Agent", "state": 2, "elapsed": 2.0}

    def test_snapshot_uninitialized(self):
        clock = TickClock(tps=10)
        machine = StateMachine(registry=StateRegistry(), clock=clock.now)
        assert machine.snapshot()["state"] is None

    def test_snapshot_is_json_compatible(self):
        clock = TickClock(tps=10)
        machine = build("Agent", clock)
        data = machine.snapshot()
        assert json.loads(json.dumps(data)) == data

    def test_restore_mirrors_without_hooks(self):
        """A replica adopts the state and remaining time, running no hooks."""
        # Arrange
        server_clock = TickClock(tps=10)
        server = build("Agent", server_clock)
        server.change_state("Walking")
        server_clock.advance(30)

        client_clock = TickClock(tps=10)
        client_clock.advance(100)
        client_registry = StateRegistry()
        log = []
        client = build("Agent", client_clock, client_registry, log)
        log.clear()

        # Act
        client.restore(json.loads(json.dumps(server.snapshot())))

        # Assert
        assert client.state == "Walking"
        assert client_registry.get("Agent") == "Walking"
        assert client.time_remaining() == pytest.approx(2.0)
        assert log == []

    def test_restored_timer_keeps_running(self):
        clock = TickClock(tps=10)
        replica = build("Replica", clock)
        replica.restore({"version": 1, "name": "Replica", "state": 2, "elapsed": 4.5})

        clock.advance(4)
        replica.update()
        assert replica.state == "Walking"

        clock.advance(1)
        replica.update()
        assert replica.state == "Idle"

    def test_restore_none_resets(self):
        clock = TickClock(tps=10)
        registry = StateRegistry()
        machine = build("Agent", clock, registry)

        machine.restore({"version": 1, "name": "Agent", "state": None, "elapsed": 0.0})

        assert machine.state == ""
        assert registry.get("Agent") == ""

    def test_restore_wrong_version(self):
        machine = build("Agent", TickClock(tps=10))
        with pytest.raises(SnapshotError):
            machine.restore({"version": 99, "state": 1, "elapsed": 0.0})

    def test_restore_unknown_ordinal(self):
        machine = build("Agent", TickClock(tps=10))
        with pytest.raises(SnapshotError):
            machine.restore({"version": 1, "state": 7, "elapsed": 0.0})
        assert machine.state == "Idle"

    def test_restore_other_identity(self):
        machine = build("Agent", TickClock(tps=10))
        with pytest.raises(SnapshotError):
            machine.restore({"version": 1, "name": "Someone", "state": 2, "elapsed": 0.0})
        assert machine.state == "Idle"

    @pytest.mark.parametrize("ordinal", [True, False, "2", 2.0])
    def test_restore_rejects_non_int_ordinal(self, ordinal):
        machine = build("Agent", TickClock(tps=10))
        with pytest.raises(SnapshotError):
            machine.restore({"version": 1, "name": "Agent", "state": ordinal, "elapsed": 0.0})
        assert machine.state == "Idle"

    @pytest.mark.parametrize("elapsed", [None, "1.5", True])
    def test_restore_rejects_bad_elapsed(self, elapsed):
        machine = build("Agent", TickClock(tps=10))
        with pytest.raises(SnapshotError):
            machine.restore({"version": 1, "name": "Agent", "state": 2, "elapsed": elapsed})
        assert machine.state == "Idle"
