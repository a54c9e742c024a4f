from tablealloc.models.player import Player
from tablealloc.models.round import Round
from tablealloc.models.table_allocation import TableAllocation
from tablealloc.models.terrain_type import TerrainType
from tablealloc.models.tournament import Tournament
from tablealloc.models.tournament_table import TournamentTable

__all__ = [
    "Tournament",
    "Round",
    "Player",
    "TerrainType",
    "TournamentTable",
    "TableAllocation",
]
