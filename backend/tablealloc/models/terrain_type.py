from typing import Optional

from sqlmodel import Field, SQLModel


class TerrainType(SQLModel, table=True):
    __tablename__ = "terraintype"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True)
    description: Optional[str] = None
    sort_order: int = Field(default=0)
