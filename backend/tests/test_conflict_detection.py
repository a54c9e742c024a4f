"""
Conflict detection: every table or terrain reuse left in a final
allocation must show up in the conflict list, named by player.
"""

from tablealloc.services.allocation_engine import AllocationEngine
from tablealloc.services.history_provider import InMemoryHistoryProvider
from tablealloc.utils.allocation_types import ConflictType
from tests.factories import make_pairing, make_tables

engine = AllocationEngine()


def _assert_conflicts_complete(result, history):
    """Recompute violations from scratch and compare against the report."""
    for allocation in result.allocations:
        if allocation.is_bye:
            assert allocation.conflicts == ()
            continue
        for player_id, _ in allocation.pairing.players():
            seen = history.history_for(player_id)
            flagged = {(c.type, c.player_id) for c in allocation.conflicts}
            if allocation.table_number in seen.table_numbers:
                assert (ConflictType.TABLE_REUSE, player_id) in flagged
            if allocation.terrain_type_id is not None and allocation.terrain_type_id in seen.terrain_type_ids:
                assert (ConflictType.TERRAIN_REUSE, player_id) in flagged

    flat = [c for a in result.allocations for c in a.conflicts]
    assert list(result.conflicts) == flat


def test_every_player_saw_every_table():
    numbers = [1, 2, 3]
    players = ["a1", "a2", "b1", "b2", "c1", "c2"]
    history = InMemoryHistoryProvider.from_usage(tables={p: numbers for p in players})
    pairings = [make_pairing("a1", "a2"), make_pairing("b1", "b2"), make_pairing("c1", "c2")]

    result = engine.generate(pairings, make_tables(*numbers), 3, history)

    assert result.conflict_count == 6
    assert all(c.type == ConflictType.TABLE_REUSE for c in result.conflicts)
    _assert_conflicts_complete(result, history)


def test_terrain_conflicts_when_every_terrain_is_known():
    tables = make_tables(1, 2, terrains={1: (1, "Urban"), 2: (2, "Ruins")})
    history = InMemoryHistoryProvider.from_usage(terrains={"a1": [1, 2], "b2": [1, 2]})
    pairings = [make_pairing("a1", "a2", total1=3), make_pairing("b1", "b2")]

    result = engine.generate(pairings, tables, 2, history)

    messages = sorted(c.message for c in result.conflicts)
    assert messages == [
        "Player a1 previously experienced Urban",
        "Player b2 previously experienced Ruins",
    ]
    assert result.summary == "Best effort allocation with 2 terrain reuse conflict(s)."
    _assert_conflicts_complete(result, history)


def test_mixed_conflicts_summary():
    tables = make_tables(1, terrains={1: (5, "Volkus")})
    history = InMemoryHistoryProvider.from_usage(tables={"a1": [1]}, terrains={"a2": [5]})

    result = engine.generate([make_pairing("a1", "a2")], tables, 2, history)

    assert [c.type for c in result.conflicts] == [ConflictType.TABLE_REUSE, ConflictType.TERRAIN_REUSE]
    assert result.conflicts[0].table_number == 1
    assert result.summary == (
        "Best effort allocation with 1 table reuse conflict(s), 1 terrain reuse conflict(s)."
    )
    _assert_conflicts_complete(result, history)


def test_conflict_counts_by_type():
    tables = make_tables(1, terrains={1: (5, "Volkus")})
    history = InMemoryHistoryProvider.from_usage(tables={"a1": [1], "a2": [1]}, terrains={"a2": [5]})

    result = engine.generate([make_pairing("a1", "a2")], tables, 2, history)

    assert result.conflict_counts() == {ConflictType.TABLE_REUSE: 2, ConflictType.TERRAIN_REUSE: 1}


def test_crowded_tournament_reports_everything():
    """Many players, dense history, few tables: conflicts are unavoidable."""
    numbers = list(range(1, 9))
    tables = make_tables(*numbers, terrains={n: ((n % 2) + 1, None) for n in numbers})
    table_usage = {}
    terrain_usage = {}
    for i in range(8):
        table_usage[f"x{i}"] = [n for n in numbers if (n + i) % 3 == 0]
        table_usage[f"y{i}"] = [n for n in numbers if (n * i) % 4 == 1]
        terrain_usage[f"x{i}"] = [1] if i % 2 else [2]
        terrain_usage[f"y{i}"] = [1, 2] if i % 3 == 0 else []
    history = InMemoryHistoryProvider.from_usage(tables=table_usage, terrains=terrain_usage)
    pairings = [make_pairing(f"x{i}", f"y{i}", total1=i, total2=8 - i) for i in range(8)]

    result = engine.generate(pairings, tables, 4, history)

    assert result.conflict_count > 0
    _assert_conflicts_complete(result, history)


def test_clean_round_has_no_conflicts(empty_history):
    pairings = [make_pairing("a1", "a2"), make_pairing("b1", "b2")]

    result = engine.generate(pairings, make_tables(1, 2), 2, empty_history)

    assert result.conflicts == ()
    assert result.summary == "All allocations optimal - no constraint violations."
