import pytest

from qvote_node.qvote_runtime.election import ElectionSettings, ElectionStateMachine


@pytest.fixture(scope="function")
def machine():
    """Fresh idle election machine per test, default 100 credits."""
    return ElectionStateMachine(ElectionSettings(lock_timeout_seconds=1.0), community_id="test")


@pytest.fixture(scope="function")
def voting_machine(machine):
    """Machine in the voting phase with #0 bowling, #1 escape room."""
    machine.start("@admin", "team event")
    machine.propose("@alice", "bowling")
    machine.propose("@bob", "escape room")
    machine.stop("@admin")
    return machine
