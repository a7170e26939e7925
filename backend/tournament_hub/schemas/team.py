from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from tournament_hub.schemas.refs import TournamentRef


class TeamCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    logo_path: Optional[str] = Field(default=None, max_length=500)
    tournament_ids: List[int] = []
    is_active: bool = True


class TeamUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    logo_path: Optional[str] = Field(default=None, max_length=500)
    is_active: Optional[bool] = None


class TeamOut(BaseModel):
    id: int
    name: str
    logo_path: Optional[str] = None
    is_active: bool
    tournaments: List[TournamentRef] = []
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
