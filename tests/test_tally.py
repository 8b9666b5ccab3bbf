# tests/test_tally.py

from qvote_node.qvote_runtime.proposals import ProposalRegistry
from qvote_node.qvote_runtime.tally import TallyEntry, compute_tally, winner, winners


def _registry(*texts):
    reg = ProposalRegistry()
    for t in texts:
        reg.add("@alice", t)
    return reg


def test_every_proposal_listed_even_without_votes():
    reg = _registry("a", "b", "c")
    entries = compute_tally(reg, [])
    assert [e.proposal_index for e in entries] == [0, 1, 2]
    assert all(e.total_votes == 0 and e.total_credits_spent == 0 for e in entries)


def test_totals_aggregate_votes_and_quadratic_credits():
    reg = _registry("a", "b")
    entries = compute_tally(reg, [{0: 3, 1: 2}, {0: 4}])
    by_index = {e.proposal_index: e for e in entries}

    assert by_index[0].total_votes == 7
    assert by_index[0].total_credits_spent == 9 + 16
    assert by_index[1].total_votes == 2
    assert by_index[1].total_credits_spent == 4


def test_ties_resolve_by_earliest_proposal():
    reg = _registry("a", "b", "c", "d")
    entries = compute_tally(reg, [{3: 2, 1: 2}, {2: 5}])

    assert [e.proposal_index for e in entries] == [2, 1, 3, 0]


def test_unknown_indices_ignored():
    reg = _registry("a")
    entries = compute_tally(reg, [{0: 1, 7: 9}])
    assert entries == (TallyEntry(0, "a", 1, 1),)


def test_winners_limits_and_orders():
    reg = _registry("a", "b", "c", "d", "e", "f", "g")
    entries = compute_tally(reg, [{6: 3, 5: 2}])

    top = winners(entries)
    assert len(top) == 5
    assert [e.proposal_index for e in top] == [6, 5, 0, 1, 2]
    assert winners(entries, limit=0) == ()
    assert winner(entries).proposal_index == 6


def test_winner_of_empty_tally_is_none():
    assert winner(()) is None
