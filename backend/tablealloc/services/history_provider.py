"""
History providers: what each player has already been exposed to.

The engine only ever calls history_for(player_id). Anything that answers
that question for rounds strictly before the one being allocated can be
plugged in:

- InMemoryHistoryProvider: fixed mapping, or built from earlier results
- SqlHistoryProvider: reads recorded allocations through a SQLModel session
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Protocol

from sqlalchemy import or_
from sqlmodel import Session, select

from tablealloc.models.player import Player
from tablealloc.models.round import Round
from tablealloc.models.table_allocation import TableAllocation
from tablealloc.models.terrain_type import TerrainType
from tablealloc.models.tournament_table import TournamentTable
from tablealloc.utils.allocation_types import (
    EMPTY_HISTORY,
    AllocationResult,
    HistoryEntry,
    TableDescriptor,
)

logger = logging.getLogger(__name__)


class HistoryProvider(Protocol):
    def history_for(self, player_id: str) -> HistoryEntry:
        ...


class InMemoryHistoryProvider:
    """History held in a plain dict keyed by external player id."""

    def __init__(self, entries: Optional[Mapping[str, HistoryEntry]] = None):
        self._entries: Dict[str, HistoryEntry] = dict(entries or {})

    def history_for(self, player_id: str) -> HistoryEntry:
        return self._entries.get(player_id, EMPTY_HISTORY)

    @classmethod
    def from_usage(
        cls,
        tables: Optional[Mapping[str, Iterable[int]]] = None,
        terrains: Optional[Mapping[str, Iterable[int]]] = None,
    ) -> "InMemoryHistoryProvider":
        """Build from {player_id: [table numbers]} and {player_id: [terrain ids]}."""
        tables = tables or {}
        terrains = terrains or {}
        entries = {}
        for player_id in sorted(set(tables) | set(terrains)):
            entries[player_id] = HistoryEntry(
                table_numbers=frozenset(tables.get(player_id, ())),
                terrain_type_ids=frozenset(terrains.get(player_id, ())),
            )
        return cls(entries)

    @classmethod
    def from_results(
        cls, results: Iterable[AllocationResult], before_round: int
    ) -> "InMemoryHistoryProvider":
        """
        Accumulate history from earlier allocation results.

        Only results with round_number < before_round count. Byes leave no
        trace since they never sit at a table.
        """
        tables: Dict[str, set] = {}
        terrains: Dict[str, set] = {}
        for result in results:
            if result.round_number >= before_round:
                continue
            for allocation in result.allocations:
                if allocation.is_bye or allocation.table_number is None:
                    continue
                for player_id, _ in allocation.pairing.players():
                    tables.setdefault(player_id, set()).add(allocation.table_number)
                    if allocation.terrain_type_id is not None:
                        terrains.setdefault(player_id, set()).add(allocation.terrain_type_id)
        return cls.from_usage(tables, terrains)


class SqlHistoryProvider:
    """
    History read from stored TableAllocation rows.

    Players are matched by their external (BCP) id within the tournament.
    Terrain comes from the table's current terrain type. Lookups are cached
    per player for the lifetime of the provider; build a fresh provider (or
    call clear_cache) after the stored allocations change.
    """

    def __init__(self, session: Session, tournament_id: int, round_number: int):
        self.session = session
        self.tournament_id = tournament_id
        self.round_number = round_number
        self._cache: Dict[str, HistoryEntry] = {}

    def history_for(self, player_id: str) -> HistoryEntry:
        if self.round_number <= 1:
            return EMPTY_HISTORY

        cached = self._cache.get(player_id)
        if cached is not None:
            return cached

        entry = self._query(player_id)
        self._cache[player_id] = entry
        logger.debug(
            "History for player %s before round %d: tables=%s terrains=%s",
            player_id,
            self.round_number,
            sorted(entry.table_numbers),
            sorted(entry.terrain_type_ids),
        )
        return entry

    def clear_cache(self) -> None:
        self._cache.clear()

    def _query(self, player_id: str) -> HistoryEntry:
        player = self.session.exec(
            select(Player).where(
                Player.tournament_id == self.tournament_id,
                Player.bcp_player_id == player_id,
            )
        ).first()
        if player is None:
            return EMPTY_HISTORY

        rows = self.session.exec(
            select(TournamentTable.table_number, TournamentTable.terrain_type_id)
            .join(TableAllocation, TableAllocation.table_id == TournamentTable.id)
            .join(Round, TableAllocation.round_id == Round.id)
            .where(
                Round.tournament_id == self.tournament_id,
                Round.round_number < self.round_number,
                or_(TableAllocation.player1_id == player.id, TableAllocation.player2_id == player.id),
            )
            .order_by(Round.round_number)
        ).all()

        return HistoryEntry(
            table_numbers=frozenset(table_number for table_number, _ in rows),
            terrain_type_ids=frozenset(terrain_id for _, terrain_id in rows if terrain_id is not None),
        )


def load_table_descriptors(session: Session, tournament_id: int) -> List[TableDescriptor]:
    """Configured tables for a tournament, ascending by table number, with terrain names."""
    rows = session.exec(
        select(TournamentTable, TerrainType)
        .join(TerrainType, TournamentTable.terrain_type_id == TerrainType.id, isouter=True)
        .where(TournamentTable.tournament_id == tournament_id)
        .order_by(TournamentTable.table_number)
    ).all()

    return [
        TableDescriptor(
            table_number=table.table_number,
            terrain_type_id=table.terrain_type_id,
            terrain_type_name=terrain.name if terrain is not None else None,
        )
        for table, terrain in rows
    ]
