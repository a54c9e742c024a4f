# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from tablealloc.models.player import Player  # noqa: F401
from tablealloc.models.round import Round  # noqa: F401
from tablealloc.models.table_allocation import TableAllocation  # noqa: F401
from tablealloc.models.terrain_type import TerrainType  # noqa: F401
from tablealloc.models.tournament import Tournament  # noqa: F401
from tablealloc.models.tournament_table import TournamentTable  # noqa: F401
