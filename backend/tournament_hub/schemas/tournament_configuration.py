from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from tournament_hub.schemas.refs import GroupRef


class TeamAssignment(BaseModel):
    team_id: int
    group_name: str  # "Group A"


class ConfigurationCreate(BaseModel):
    number_of_groups: int
    teams_per_group: int
    assignments: List[TeamAssignment] = []


class ConfigurationUpdate(BaseModel):
    number_of_groups: Optional[int] = None
    teams_per_group: Optional[int] = None
    assignments: Optional[List[TeamAssignment]] = None


class GroupOut(BaseModel):
    id: int
    group_name: str
    group_order: int
    team_ids: List[int] = []


class AssignmentOut(BaseModel):
    team_id: int
    group: GroupRef

    model_config = {"from_attributes": True}


class ConfigurationOut(BaseModel):
    id: int
    tournament_id: int
    number_of_groups: int
    teams_per_group: int
    is_configured: bool
    groups: List[GroupOut] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
