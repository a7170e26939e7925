from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from tournament_hub.schemas.refs import TeamRef


class PlayerCreate(BaseModel):
    first_name: str = Field(min_length=2, max_length=50)
    last_name: str = Field(min_length=2, max_length=50)
    email: EmailStr
    phone: Optional[str] = Field(default=None, min_length=10, max_length=15)
    date_of_birth: date
    position: Optional[str] = Field(default=None, max_length=50)
    jersey_number: Optional[int] = Field(default=None, ge=1, le=99)
    team_id: int
    profile_photo_path: Optional[str] = Field(default=None, max_length=500)


class PlayerUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    last_name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, min_length=10, max_length=15)
    date_of_birth: Optional[date] = None
    position: Optional[str] = Field(default=None, max_length=50)
    jersey_number: Optional[int] = Field(default=None, ge=1, le=99)
    team_id: Optional[int] = None
    is_active: Optional[bool] = None
    profile_photo_path: Optional[str] = Field(default=None, max_length=500)


class PlayerOut(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    date_of_birth: date
    position: Optional[str] = None
    jersey_number: Optional[int] = None
    is_active: bool
    team_id: int
    team: Optional[TeamRef] = None
    profile_photo_path: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
