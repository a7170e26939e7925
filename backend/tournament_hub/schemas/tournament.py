from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from tournament_hub.schemas.refs import CategoryRef, TeamRef


class TournamentCreate(BaseModel):
    name: str = Field(min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    start_date: datetime
    end_date: datetime
    max_teams: int = Field(ge=1, le=1000)
    category_ids: List[int] = Field(min_length=1)
    is_active: bool = True


class TournamentUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    max_teams: Optional[int] = Field(default=None, ge=1, le=1000)
    is_active: Optional[bool] = None


class CategoryIds(BaseModel):
    category_ids: List[int] = Field(min_length=1)


class TournamentOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    start_date: datetime
    end_date: datetime
    max_teams: int
    is_active: bool
    categories: List[CategoryRef] = []
    teams: List[TeamRef] = []
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
