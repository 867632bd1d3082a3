"""Tests for ordinal encoding of state names."""
import pytest
from tick_state import StateMachine, StateRegistry


@pytest.fixture
def machine():
    m = StateMachine("Encoder", registry=StateRegistry())
    for name in ("Idle", "Walking", "Running", "Jumping"):
        m.add_state(name)
    return m


class TestOrdinals:
    """Test cases for name_from_ordinal / ordinal_from_name."""

    def test_ordinals_follow_registration_order(self, machine):
        assert [machine.name_from_ordinal(i) for i in range(1, 5)] == [
            "Idle", "Walking", "Running", "Jumping",
        ]

    def test_first_ordinal_is_one(self, machine):
        assert machine.ordinal_from_name("Idle") == 1

    def test_name_ordinal_agree(self, machine):
        """Every ordinal maps to a name that maps back to the same ordinal."""
        for i in range(1, len(machine.states()) + 1):
            assert machine.ordinal_from_name(machine.name_from_ordinal(i)) == i

    @pytest.mark.parametrize("index", [0, -1, 5, 100])
    def test_out_of_range_is_none(self, machine, index):
        assert machine.name_from_ordinal(index) is None

    def test_unknown_name_is_none(self, machine):
        assert machine.ordinal_from_name("Swimming") is None
        assert machine.ordinal_from_name("") is None

    def test_empty_machine(self):
        m = StateMachine(registry=StateRegistry())
        assert m.name_from_ordinal(1) is None
        assert m.ordinal_from_name("Idle") is None

    def test_new_state_appends(self, machine):
        machine.add_state("Crouching")
        assert machine.ordinal_from_name("Crouching") == 5
        assert machine.name_from_ordinal(5) == "Crouching"

    def test_ordinal_drives_transition(self, machine):
        """An encoded ordinal can be replayed with change_state."""
        machine.change_state("Running")
        encoded = machine.ordinal_from_name(machine.state)

        replica = StateMachine("Replica", registry=StateRegistry())
        for name in machine.states():
            replica.add_state(name)
        replica.change_state(encoded)

        assert replica.state == "Running"
