"""Receipt generation endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.api.settings import get_store_settings
from app.core.deps import require_permission
from app.db.base import get_db
from app.models.order import Order, OrderStatus
from app.models.store import Store
from app.schemas.auth import CurrentUser
from app.services.receipt import (
    ReceiptData,
    ReceiptItem,
    ReceiptLine,
    generate_receipt_lines,
    format_receipt_text,
    generate_esc_pos_commands,
)
from app.services.scheduling import VN_TZ
from app.services.validation import format_phone

router = APIRouter(prefix="/receipts", tags=["receipts"])


async def build_receipt_data(db: AsyncSession, order_id: UUID, current_user: CurrentUser) -> ReceiptData:
    result = await db.execute(
        select(Order)
        .where(
            Order.id == order_id,
            Order.store_id == current_user.store_id,
        )
        .options(selectinload(Order.customer), selectinload(Order.cashier))
    )
    order = result.scalar_one_or_none()
    if not order:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Không tìm thấy đơn hàng",
        )

    store_result = await db.execute(select(Store).where(Store.id == current_user.store_id))
    store = store_result.scalar_one()
    store_settings = await get_store_settings(db, current_user.store_id)

    customer = order.customer
    return ReceiptData(
        store_name=store.name,
        store_address=store.address,
        store_phone=format_phone(store.phone) if store.phone else None,
        store_tax_id=store.tax_id,
        header_message=store_settings.receipt_header,
        order_number=order.order_number,
        order_date=order.created_at.astimezone(VN_TZ),
        cashier_name=order.cashier.full_name if order.cashier else current_user.full_name,
        status=order.status.value,
        customer_name=customer.name if customer else None,
        customer_phone=format_phone(customer.phone) if customer and customer.phone else None,
        items=[
            ReceiptItem(
                name=item.product_name,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total=item.total,
                vat_rate=item.vat_rate,
                vat_amount=item.vat_amount,
                excise_amount=item.excise_amount,
            )
            for item in order.items
        ],
        subtotal=order.subtotal,
        excise_amount=order.excise_amount,
        vat_amount=order.vat_amount,
        discount_amount=order.discount_amount,
        points_redeemed=order.points_redeemed,
        points_discount=order.points_discount,
        total=order.total,
        cash_rounding=order.cash_rounding,
        amount_due=order.amount_due,
        payment_method=order.payment_method.value if order.payment_method else None,
        amount_paid=order.amount_paid,
        change=order.change,
        points_earned=order.points_earned if order.status == OrderStatus.COMPLETED else 0,
        note=order.note,
        footer_message=store_settings.receipt_footer,
    )


@router.get("/{order_id}/data", response_model=ReceiptData)
async def get_receipt_data(
    order_id: UUID,
    current_user: CurrentUser = Depends(require_permission("order:read")),
    db: AsyncSession = Depends(get_db),
):
    return await build_receipt_data(db, order_id, current_user)


@router.get("/{order_id}/preview", response_model=list[ReceiptLine])
async def get_receipt_preview(
    order_id: UUID,
    current_user: CurrentUser = Depends(require_permission("order:read")),
    db: AsyncSession = Depends(get_db),
):
    """Formatted receipt lines for on-screen preview."""
    receipt_data = await build_receipt_data(db, order_id, current_user)
    return generate_receipt_lines(receipt_data)


@router.get("/{order_id}/text", response_class=Response)
async def get_receipt_text(
    order_id: UUID,
    current_user: CurrentUser = Depends(require_permission("order:read")),
    db: AsyncSession = Depends(get_db),
):
    receipt_data = await build_receipt_data(db, order_id, current_user)
    text = format_receipt_text(receipt_data)
    return Response(content=text, media_type="text/plain; charset=utf-8")


@router.get("/{order_id}/escpos", response_class=Response)
async def get_receipt_escpos(
    order_id: UUID,
    current_user: CurrentUser = Depends(require_permission("order:read")),
    db: AsyncSession = Depends(get_db),
):
    """
    ESC/POS binary commands for a thermal printer.
    The mobile app sends these straight to a USB/Bluetooth printer.
    """
    receipt_data = await build_receipt_data(db, order_id, current_user)
    escpos_bytes = generate_esc_pos_commands(receipt_data)

    return Response(
        content=escpos_bytes,
        media_type="application/octet-stream",
        headers={
            "Content-Disposition": f'attachment; filename="receipt_{receipt_data.order_number}.bin"'
        },
    )
