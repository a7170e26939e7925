from typing import Optional

from pydantic import BaseModel


class TeamRef(BaseModel):
    id: int
    name: str
    logo_path: Optional[str] = None

    model_config = {"from_attributes": True}


class PlayerRef(BaseModel):
    id: int
    first_name: str
    last_name: str
    jersey_number: Optional[int] = None

    model_config = {"from_attributes": True}


class TournamentRef(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}


class GroupRef(BaseModel):
    id: int
    group_name: str

    model_config = {"from_attributes": True}


class CategoryRef(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}
