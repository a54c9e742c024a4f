from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel


class TournamentTable(SQLModel, table=True):
    """A physical table. table_number is what players see on the floor."""

    __tablename__ = "tournamenttable"
    __table_args__ = (
        SAUniqueConstraint("tournament_id", "table_number", name="uq_table_tournament_number"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    table_number: int
    terrain_type_id: Optional[int] = Field(default=None, foreign_key="terraintype.id")
