# tests/test_commands.py

import pytest

from qvote_node.qvote_runtime.commands import (
    ElectionConcluded,
    MovedToVoting,
    Points,
    PointsBalance,
    Propose,
    Proposed,
    Start,
    Started,
    Stop,
    Tally,
    TallySnapshot,
    Vote,
    VoteCast,
)
from qvote_node.qvote_runtime.errors import InsufficientCredits


def test_execute_routes_every_command(machine):
    assert isinstance(machine.execute(Start("@admin", " team event ")).unwrap(), Started)
    assert machine.execute(Propose("@alice", "bowling")).unwrap() == Proposed(index=0)
    assert machine.execute(Propose("@bob", "escape room")).unwrap() == Proposed(index=1)
    assert isinstance(machine.execute(Stop("@admin")).unwrap(), MovedToVoting)
    assert machine.execute(Vote("@alice", 0, 5)).unwrap() == VoteCast(remaining_credits=75)
    assert machine.execute(Points("@alice")).unwrap() == PointsBalance(remaining_credits=75)
    assert isinstance(machine.execute(Tally("@alice")).unwrap(), TallySnapshot)
    assert isinstance(machine.execute(Stop("@admin")).unwrap(), ElectionConcluded)


def test_started_prompt_is_trimmed(machine):
    result = machine.execute(Start("@admin", "  team event \n"))
    assert result.to_dict() == {"ok": True, "outcome": "started", "prompt": "team event"}


def test_failure_result_carries_error_kind_and_context(voting_machine):
    voting_machine.execute(Vote("@alice", 0, 9))
    result = voting_machine.execute(Vote("@alice", 1, 5))

    assert result.ok is False
    assert isinstance(result.error, InsufficientCredits)
    assert result.to_dict() == {
        "ok": False,
        "error": "insufficient_credits",
        "available": 19,
        "required": 25,
    }
    with pytest.raises(InsufficientCredits):
        result.unwrap()


def test_failed_commands_do_not_change_state(voting_machine):
    before = voting_machine.status()
    for cmd in (
        Start("@admin", "again"),
        Propose("@alice", "late idea"),
        Vote("@alice", 9, 1),
        Vote("@alice", 0, 11),
        Vote("@alice", 0, -2),
    ):
        assert not voting_machine.execute(cmd).ok
    assert voting_machine.status() == before
    assert voting_machine.execute(Points("@alice")).unwrap().remaining_credits == 100


def test_concluded_outcome_serializes_winner(voting_machine):
    voting_machine.execute(Vote("@alice", 1, 3))
    out = voting_machine.execute(Stop("@admin")).to_dict()

    assert out["ok"] is True
    assert out["outcome"] == "election_concluded"
    assert out["winner"]["proposal_index"] == 1
    assert out["winner"]["text"] == "escape room"
    assert [e["proposal_index"] for e in out["tally"]] == [1, 0]
    # no voter identities in tally output
    assert "@alice" not in repr(out)


def test_unknown_command_type_is_a_programming_error(machine):
    with pytest.raises(TypeError):
        machine.execute(object())
