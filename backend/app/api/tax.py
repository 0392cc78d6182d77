"""Ad-hoc tax calculator (the calculator screen) and tax category lookup."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.settings import get_store_settings
from app.core.deps import get_current_user, require_permission
from app.db.base import get_db
from app.schemas.auth import CurrentUser
from app.schemas.tax import TaxCalculateRequest, TaxCategoryInfo
from app.services.tax import TaxCalculation, calculate_tax, list_tax_categories

router = APIRouter(prefix="/tax", tags=["tax"])


@router.post("/calculate", response_model=TaxCalculation)
async def calculate(
    body: TaxCalculateRequest,
    current_user: CurrentUser = Depends(require_permission("tax:calculate")),
    db: AsyncSession = Depends(get_db),
):
    """Run the tax engine over arbitrary lines. Nothing is persisted."""
    rounding_step = body.rounding_step
    if rounding_step is None:
        store_settings = await get_store_settings(db, current_user.store_id)
        rounding_step = store_settings.cash_rounding_step
    return calculate_tax(
        body.items,
        discount_value=body.discount_value,
        discount_type=body.discount_type,
        is_export=body.is_export,
        rounding_step=rounding_step,
    )


@router.get("/categories", response_model=list[TaxCategoryInfo])
async def get_tax_categories(current_user: CurrentUser = Depends(get_current_user)):
    return [TaxCategoryInfo(**c) for c in list_tax_categories()]
