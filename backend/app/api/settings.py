"""Store settings endpoints. Settings rows are created on first access."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.deps import get_current_user, require_permission
from app.db.base import get_db
from app.models.settings import StoreSettings
from app.schemas.auth import CurrentUser
from app.schemas.settings import StoreSettingsResponse, StoreSettingsUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


async def get_store_settings(db: AsyncSession, store_id: UUID) -> StoreSettings:
    """Load the store's settings, adding a default row if there is none yet."""
    result = await db.execute(select(StoreSettings).where(StoreSettings.store_id == store_id))
    store_settings = result.scalar_one_or_none()
    if store_settings is None:
        store_settings = StoreSettings(
            store_id=store_id,
            prices_include_tax=True,
            is_export_store=False,
            cash_rounding_step=settings.CASH_ROUNDING_STEP,
            loyalty_enabled=True,
            receipt_footer="Cảm ơn quý khách! Hẹn gặp lại!",
        )
        db.add(store_settings)
        await db.flush()
        logger.info("Created default settings for store %s", store_id)
    return store_settings


@router.get("", response_model=StoreSettingsResponse)
async def read_settings(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    store_settings = await get_store_settings(db, current_user.store_id)
    await db.commit()
    return StoreSettingsResponse.model_validate(store_settings)


@router.patch("", response_model=StoreSettingsResponse)
async def update_settings(
    body: StoreSettingsUpdate,
    current_user: CurrentUser = Depends(require_permission("store:settings")),
    db: AsyncSession = Depends(get_db),
):
    """Update store settings (requires store:settings)."""
    store_settings = await get_store_settings(db, current_user.store_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(store_settings, field, value)
    await db.commit()
    await db.refresh(store_settings)
    return StoreSettingsResponse.model_validate(store_settings)
