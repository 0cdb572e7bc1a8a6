"""Forum campaign router."""
from uuid import UUID
from typing import List

from fastapi import APIRouter, Depends, status

from agora.context import Context
from agora.errors import NotFoundError
from agora.routers.deps import get_context
from agora.schemas.campaign import (
    CampaignCreate, CampaignProgress, CampaignRead, CampaignUpdate, ParticipationState,
)
from agora.services import campaigns

router = APIRouter(prefix="/campaigns", tags=["campaigns"])


@router.get("/active", response_model=List[CampaignRead])
def list_active_campaigns(tenant_id: UUID, ctx: Context = Depends(get_context)):
    return campaigns.get_active_campaigns(ctx, tenant_id)


@router.get("/{campaign_id}", response_model=CampaignRead)
def get_campaign(campaign_id: UUID, ctx: Context = Depends(get_context)):
    campaign = campaigns.get_campaign_by_id(ctx, campaign_id)
    if campaign is None:
        raise NotFoundError("Campaign", campaign_id)
    return campaign


@router.post("", response_model=CampaignRead, status_code=status.HTTP_201_CREATED)
def create_campaign(data: CampaignCreate, ctx: Context = Depends(get_context)):
    return campaigns.create_campaign(ctx, data)


@router.patch("/{campaign_id}", response_model=CampaignRead)
def update_campaign(campaign_id: UUID, update: CampaignUpdate, ctx: Context = Depends(get_context)):
    return campaigns.update_campaign(ctx, campaign_id, update)


@router.delete("/{campaign_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_campaign(campaign_id: UUID, ctx: Context = Depends(get_context)):
    campaigns.delete_campaign(ctx, campaign_id)


@router.post("/{campaign_id}/participation", response_model=ParticipationState)
def toggle_participation(campaign_id: UUID, ctx: Context = Depends(get_context)):
    return campaigns.toggle_campaign_participation(ctx, campaign_id)


@router.get("/{campaign_id}/participation", response_model=ParticipationState)
def get_participation(campaign_id: UUID, ctx: Context = Depends(get_context)):
    return ParticipationState(joined=campaigns.has_user_joined_campaign(ctx, campaign_id))


@router.post("/{campaign_id}/progress")
def add_progress(campaign_id: UUID, data: CampaignProgress, ctx: Context = Depends(get_context)):
    return {"current_progress": campaigns.add_campaign_progress(ctx, campaign_id, data.points)}
