"""Campaign schemas."""
from uuid import UUID
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CampaignCreate(BaseModel):
    tenant_id: UUID
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    prize: str = ""
    target_points: int = Field(gt=0)
    start_date: datetime
    end_date: datetime
    is_active: bool = True

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date >= self.end_date:
            raise ValueError("start_date must be before end_date")
        return self


class CampaignUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    prize: str | None = None
    target_points: int | None = Field(None, gt=0)
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_active: bool | None = None


class CampaignRead(BaseModel):
    id: UUID
    tenant_id: UUID
    title: str
    description: str
    prize: str
    target_points: int
    current_progress: int
    start_date: datetime
    end_date: datetime
    is_active: bool
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class CampaignProgress(BaseModel):
    points: int = Field(gt=0)


class ParticipationState(BaseModel):
    joined: bool
