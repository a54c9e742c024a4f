from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel


class Player(SQLModel, table=True):
    __table_args__ = (
        SAUniqueConstraint("tournament_id", "bcp_player_id", name="uq_player_tournament_bcp"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    bcp_player_id: str
    name: str
    total_score: int = Field(default=0)
