from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


class TableAllocation(SQLModel, table=True):
    """
    A stored pairing-to-table assignment for one round.

    table_id and player2_id are both null for a bye.
    """

    __tablename__ = "tableallocation"

    id: Optional[int] = Field(default=None, primary_key=True)
    round_id: int = Field(foreign_key="round.id", index=True)
    table_id: Optional[int] = Field(default=None, foreign_key="tournamenttable.id")
    player1_id: int = Field(foreign_key="player.id", index=True)
    player2_id: Optional[int] = Field(default=None, foreign_key="player.id", index=True)
    player1_score: int = Field(default=0)
    player2_score: int = Field(default=0)
    bcp_table_number: Optional[int] = None
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
