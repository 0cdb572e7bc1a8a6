"""Forum campaigns and participation."""
import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from agora.context import Context
from agora.errors import NotFoundError, ValidationError
from agora.models.forum import CampaignParticipant, ForumCampaign
from agora.models.tenant import Tenant
from agora.schemas.campaign import CampaignCreate, CampaignUpdate, ParticipationState
from agora.services.audit import log_admin_action
from agora.services.authorization import require_admin, require_tenant_access, require_user

logger = logging.getLogger(__name__)


def _get_campaign(ctx: Context, campaign_id: UUID) -> ForumCampaign:
    campaign = ctx.db.get(ForumCampaign, campaign_id)
    if campaign is None:
        raise NotFoundError("Campaign", campaign_id)
    return campaign


def get_active_campaigns(ctx: Context, tenant_id: UUID) -> List[ForumCampaign]:
    """Active campaigns of a tenant whose window contains the current time."""
    now = ctx.system_time()
    return ctx.db.query(ForumCampaign).filter(
        ForumCampaign.tenant_id == tenant_id,
        ForumCampaign.is_active.is_(True),
        ForumCampaign.start_date < now,
        ForumCampaign.end_date > now,
    ).order_by(ForumCampaign.end_date).all()


def get_campaign_by_id(ctx: Context, campaign_id: UUID) -> Optional[ForumCampaign]:
    return ctx.db.get(ForumCampaign, campaign_id)


def create_campaign(ctx: Context, data: CampaignCreate) -> ForumCampaign:
    require_admin(ctx)
    if ctx.db.get(Tenant, data.tenant_id) is None:
        raise NotFoundError("Tenant", data.tenant_id)

    now = ctx.system_time()
    campaign = ForumCampaign(
        **data.model_dump(),
        current_progress=0,
        created_at=now,
        updated_at=now,
    )
    ctx.db.add(campaign)
    ctx.db.commit()
    ctx.db.refresh(campaign)

    log_admin_action(ctx, "settings_changed", {"action": "create_campaign", "campaign_id": campaign.id})
    return campaign


def update_campaign(ctx: Context, campaign_id: UUID, update_in: CampaignUpdate) -> ForumCampaign:
    require_admin(ctx)
    campaign = _get_campaign(ctx, campaign_id)

    update_data = update_in.model_dump(exclude_unset=True, exclude_none=True)
    start = update_data.get("start_date", campaign.start_date)
    end = update_data.get("end_date", campaign.end_date)
    if start >= end:
        raise ValidationError("start_date must be before end_date")

    for field, value in update_data.items():
        setattr(campaign, field, value)
    campaign.updated_at = ctx.system_time()

    ctx.db.commit()
    ctx.db.refresh(campaign)

    log_admin_action(ctx, "settings_changed", {
        "action": "update_campaign",
        "campaign_id": campaign.id,
        "fields": sorted(update_data),
    })
    return campaign


def delete_campaign(ctx: Context, campaign_id: UUID) -> None:
    require_admin(ctx)
    campaign = _get_campaign(ctx, campaign_id)

    ctx.db.delete(campaign)
    ctx.db.commit()

    log_admin_action(ctx, "settings_changed", {"action": "delete_campaign", "campaign_id": campaign_id})


def _find_participant(ctx: Context, user_id: UUID, campaign_id: UUID) -> Optional[CampaignParticipant]:
    return ctx.db.query(CampaignParticipant).filter(
        CampaignParticipant.user_id == user_id,
        CampaignParticipant.campaign_id == campaign_id,
    ).first()


def toggle_campaign_participation(ctx: Context, campaign_id: UUID) -> ParticipationState:
    campaign = _get_campaign(ctx, campaign_id)
    user = require_tenant_access(ctx, campaign.tenant_id)
    user_id, campaign_id = user.id, campaign.id

    existing = _find_participant(ctx, user_id, campaign_id)

    if existing:
        ctx.db.delete(existing)
        joined = False
    else:
        ctx.db.add(CampaignParticipant(user_id=user_id, campaign_id=campaign_id, joined_at=ctx.system_time()))
        joined = True
    try:
        ctx.db.commit()
    except IntegrityError:
        ctx.db.rollback()
        joined = ctx.db.query(CampaignParticipant.id).filter(
            CampaignParticipant.user_id == user_id,
            CampaignParticipant.campaign_id == campaign_id,
        ).first() is not None
    return ParticipationState(joined=joined)


def has_user_joined_campaign(ctx: Context, campaign_id: UUID) -> bool:
    user = require_user(ctx)
    return ctx.db.query(CampaignParticipant.id).filter(
        CampaignParticipant.user_id == user.id,
        CampaignParticipant.campaign_id == campaign_id,
    ).first() is not None


def add_campaign_progress(ctx: Context, campaign_id: UUID, points: int) -> int:
    """Atomically add points to a campaign; returns the new progress."""
    require_admin(ctx)
    if points <= 0:
        raise ValidationError("points must be positive")

    progress = ctx.db.execute(
        update(ForumCampaign)
        .where(ForumCampaign.id == campaign_id)
        .values(current_progress=ForumCampaign.current_progress + points)
        .returning(ForumCampaign.current_progress)
        .execution_options(synchronize_session=False)
    ).scalar_one_or_none()
    if progress is None:
        ctx.db.rollback()
        raise NotFoundError("Campaign", campaign_id)
    ctx.db.commit()

    logger.info(f"Campaign {campaign_id} progress is now {progress}")
    return progress
