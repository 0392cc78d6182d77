"""Payment endpoints: CRUD plus VNPay and MoMo create/IPN handlers."""

import datetime
import hashlib
import hmac
import logging
import urllib.parse
import uuid as _uuid_module
from decimal import Decimal
from uuid import UUID

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.settings import get_store_settings
from app.core.config import settings
from app.core.deps import require_permission
from app.core.errors import OrderStateError
from app.db.base import get_db
from app.models.order import Order, OrderStatus
from app.models.payment import Payment, PaymentGateway, PaymentStatus
from app.schemas.auth import CurrentUser
from app.schemas.payment import (
    IPNResponse,
    MoMoCreateResponse,
    MoMoPaymentRequest,
    PaymentCreate,
    PaymentListResponse,
    PaymentResponse,
    PaymentUpdate,
    VNPayCreateResponse,
    VNPayPaymentRequest,
)
from app.services import orders as order_service
from app.services.scheduling import VN_TZ
from app.services.tax import quantize_money

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


# ---------------------------------------------------------------------------
# Helpers – signatures
# ---------------------------------------------------------------------------


def vnpay_hash_data(params: dict) -> str:
    """VNPay signs params sorted by key, URL-encoded as key=value joined by '&'."""
    return "&".join(
        f"{k}={urllib.parse.quote_plus(str(v))}" for k, v in sorted(params.items())
    )


def vnpay_sign(params: dict, secret_key: str) -> str:
    return hmac.new(
        secret_key.encode("utf-8"), vnpay_hash_data(params).encode("utf-8"), hashlib.sha512
    ).hexdigest()


def vnpay_verify_signature(params: dict, secret_key: str) -> bool:
    """Verify VNPay HMAC-SHA512 over every vnp_* param except the hash fields."""
    params = dict(params)
    secure_hash = params.pop("vnp_SecureHash", None)
    params.pop("vnp_SecureHashType", None)
    if not secure_hash:
        return False
    expected = vnpay_sign(params, secret_key)
    return hmac.compare_digest(expected.lower(), secure_hash.lower())


MOMO_IPN_FIELDS = (
    "accessKey", "amount", "extraData", "message", "orderId", "orderInfo",
    "orderType", "partnerCode", "payType", "requestId", "responseTime",
    "resultCode", "transId",
)

MOMO_CREATE_FIELDS = (
    "accessKey", "amount", "extraData", "ipnUrl", "orderId", "orderInfo",
    "partnerCode", "redirectUrl", "requestId", "requestType",
)


def momo_sign(data: dict, fields: tuple[str, ...], secret_key: str) -> str:
    """HMAC-SHA256 over ``field=value`` pairs in MoMo's documented field order."""
    raw = "&".join(f"{field}={data.get(field, '')}" for field in fields)
    return hmac.new(
        secret_key.encode("utf-8"), raw.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def momo_verify_signature(data: dict, secret_key: str) -> bool:
    data = dict(data, accessKey=data.get("accessKey", settings.MOMO_ACCESS_KEY))
    expected = momo_sign(data, MOMO_IPN_FIELDS, secret_key)
    return hmac.compare_digest(expected, str(data.get("signature", "")))


async def _get_order(db: AsyncSession, order_id: UUID, store_id: UUID) -> Order:
    order = await db.get(Order, order_id)
    if not order or order.store_id != store_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Không tìm thấy đơn hàng")
    return order


def _ensure_payable(order: Order) -> None:
    if order.status != OrderStatus.PENDING:
        raise OrderStateError("Chỉ thanh toán được đơn đang chờ")


def gateway_amount(order: Order) -> Decimal:
    """Whole-đồng amount charged online; the payment row stores exactly this."""
    return quantize_money(order.total)


async def _finalize_payment(
    db: AsyncSession,
    payment: Payment,
    transaction_id: str,
    new_status: PaymentStatus,
    raw_data: dict,
) -> None:
    """Persist the gateway result; a completed payment completes its order."""
    payment.status = new_status
    payment.transaction_id = transaction_id or None
    payment.gateway_response = raw_data

    if new_status == PaymentStatus.COMPLETED:
        payment.completed_at = datetime.datetime.now(datetime.timezone.utc)
        order: Order | None = await db.get(Order, payment.order_id)
        if order and order.status == OrderStatus.PENDING:
            store_settings = await get_store_settings(db, order.store_id)
            await order_service.complete_order(
                db,
                order,
                store_settings,
                payment_method=payment.gateway.order_method,
                amount_paid=payment.amount,
            )

    await db.commit()


async def _find_by_reference(db: AsyncSession, reference: str) -> Payment | None:
    result = await db.execute(select(Payment).where(Payment.reference == reference))
    return result.scalars().first()


# ---------------------------------------------------------------------------
# CRUD endpoints
# ---------------------------------------------------------------------------


@router.get("", response_model=PaymentListResponse)
async def list_payments(
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100),
    order_id: UUID | None = None,
    gateway: PaymentGateway | None = None,
    payment_status: PaymentStatus | None = None,
    current_user: CurrentUser = Depends(require_permission("payment:read")),
    db: AsyncSession = Depends(get_db),
):
    """List payments for the current store."""
    query = select(Payment).where(Payment.store_id == current_user.store_id)
    if order_id:
        query = query.where(Payment.order_id == order_id)
    if gateway:
        query = query.where(Payment.gateway == gateway)
    if payment_status:
        query = query.where(Payment.status == payment_status)

    count_q = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_q)).scalar_one()

    query = query.offset((page - 1) * size).limit(size).order_by(Payment.created_at.desc())
    result = await db.execute(query)
    items = result.scalars().all()

    return PaymentListResponse(
        items=[PaymentResponse.model_validate(p) for p in items],
        total=total,
        page=page,
        size=size,
    )


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: UUID,
    current_user: CurrentUser = Depends(require_permission("payment:read")),
    db: AsyncSession = Depends(get_db),
):
    payment = await db.get(Payment, payment_id)
    if not payment or payment.store_id != current_user.store_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Không tìm thấy giao dịch")
    return PaymentResponse.model_validate(payment)


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def create_payment(
    payload: PaymentCreate,
    current_user: CurrentUser = Depends(require_permission("payment:create")),
    db: AsyncSession = Depends(get_db),
):
    """Record a counter payment (cash, card, transfer) in PENDING state."""
    if payload.gateway.is_online:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Thanh toán {payload.gateway.value} phải tạo qua cổng thanh toán",
        )
    order = await _get_order(db, payload.order_id, current_user.store_id)
    _ensure_payable(order)

    payment = Payment(
        amount=payload.amount,
        gateway=payload.gateway,
        note=payload.note,
        reference=payload.reference,
        order_id=order.id,
        store_id=current_user.store_id,
        processed_by=current_user.id,
        status=PaymentStatus.PENDING,
    )
    db.add(payment)
    await db.commit()
    await db.refresh(payment)
    return PaymentResponse.model_validate(payment)


@router.patch("/{payment_id}", response_model=PaymentResponse)
async def update_payment(
    payment_id: UUID,
    payload: PaymentUpdate,
    current_user: CurrentUser = Depends(require_permission("payment:update")),
    db: AsyncSession = Depends(get_db),
):
    """Manually settle or annotate a payment. Marking it completed completes the order."""
    payment = await db.get(Payment, payment_id)
    if not payment or payment.store_id != current_user.store_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Không tìm thấy giao dịch")

    updates = payload.model_dump(exclude_unset=True)
    new_status = updates.pop("status", None)
    for field, value in updates.items():
        setattr(payment, field, value)

    if new_status is not None and new_status != payment.status:
        await _finalize_payment(
            db, payment, payment.transaction_id or "", new_status, payment.gateway_response or {}
        )
    else:
        await db.commit()

    await db.refresh(payment)
    logger.info("Payment %s updated by %s", payment.id, current_user.id)
    return PaymentResponse.model_validate(payment)


# ---------------------------------------------------------------------------
# VNPay
# ---------------------------------------------------------------------------


@router.post("/vnpay/create", response_model=VNPayCreateResponse)
async def create_vnpay_payment(
    payload: VNPayPaymentRequest,
    request: Request,
    current_user: CurrentUser = Depends(require_permission("payment:create")),
    db: AsyncSession = Depends(get_db),
):
    """Build a signed VNPay redirect URL for the order's amount due."""
    order = await _get_order(db, payload.order_id, current_user.store_id)
    _ensure_payable(order)

    txn_ref = _uuid_module.uuid4().hex[:16].upper()
    now = datetime.datetime.now(VN_TZ).strftime("%Y%m%d%H%M%S")
    amount = gateway_amount(order)

    params: dict = {
        "vnp_Version": "2.1.0",
        "vnp_Command": "pay",
        "vnp_TmnCode": settings.VNPAY_TMN_CODE,
        "vnp_Amount": str(int(amount * 100)),  # VNPay expects amount x 100
        "vnp_CreateDate": now,
        "vnp_CurrCode": "VND",
        "vnp_IpAddr": request.client.host if request.client else "127.0.0.1",
        "vnp_Locale": "vn",
        "vnp_OrderInfo": payload.order_info or f"Thanh toan don hang {order.order_number}",
        "vnp_OrderType": "other",
        "vnp_ReturnUrl": payload.return_url,
        "vnp_TxnRef": txn_ref,
    }
    if payload.bank_code:
        params["vnp_BankCode"] = payload.bank_code

    params["vnp_SecureHash"] = vnpay_sign(params, settings.VNPAY_HASH_SECRET)
    payment_url = settings.VNPAY_PAYMENT_URL + "?" + urllib.parse.urlencode(params)

    payment = Payment(
        amount=amount,
        gateway=PaymentGateway.VNPAY,
        note=params["vnp_OrderInfo"],
        reference=txn_ref,
        order_id=order.id,
        store_id=current_user.store_id,
        processed_by=current_user.id,
        status=PaymentStatus.PENDING,
    )
    db.add(payment)
    await db.commit()
    await db.refresh(payment)

    logger.info("VNPay payment created: payment=%s txn_ref=%s", payment.id, txn_ref)
    return VNPayCreateResponse(payment_id=payment.id, payment_url=payment_url, txn_ref=txn_ref)


@router.get("/vnpay/ipn", response_model=IPNResponse)
async def vnpay_ipn(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """VNPay Instant Payment Notification (GET with query params)."""
    params = dict(request.query_params)
    txn_ref: str = params.get("vnp_TxnRef", "")

    if not vnpay_verify_signature(params, settings.VNPAY_HASH_SECRET):
        logger.warning("VNPay IPN: invalid signature for txn_ref=%s", txn_ref)
        return IPNResponse(RspCode="97", Message="Invalid signature")

    payment = await _find_by_reference(db, txn_ref)
    if payment is None:
        logger.warning("VNPay IPN: payment not found for txn_ref=%s", txn_ref)
        return IPNResponse(RspCode="01", Message="Order not found")

    if payment.status != PaymentStatus.PENDING:
        return IPNResponse(RspCode="02", Message="Order already confirmed")

    received_amount = Decimal(params.get("vnp_Amount", "0")) / 100
    if received_amount != payment.amount:
        logger.warning(
            "VNPay IPN: amount mismatch payment=%s got=%s expected=%s",
            payment.id, received_amount, payment.amount,
        )
        return IPNResponse(RspCode="04", Message="Invalid amount")

    succeeded = params.get("vnp_ResponseCode") == "00"
    new_status = PaymentStatus.COMPLETED if succeeded else PaymentStatus.FAILED
    await _finalize_payment(db, payment, params.get("vnp_TransactionNo", ""), new_status, params)

    logger.info("VNPay IPN processed: payment=%s status=%s", payment.id, new_status.value)
    return IPNResponse(RspCode="00", Message="Confirm Success")


# ---------------------------------------------------------------------------
# MoMo
# ---------------------------------------------------------------------------


@router.post("/momo/create", response_model=MoMoCreateResponse)
async def create_momo_payment(
    payload: MoMoPaymentRequest,
    current_user: CurrentUser = Depends(require_permission("payment:create")),
    db: AsyncSession = Depends(get_db),
):
    """Call MoMo's create API and return the pay URL / deeplink / QR."""
    order = await _get_order(db, payload.order_id, current_user.store_id)
    _ensure_payable(order)

    reference = _uuid_module.uuid4().hex[:16].upper()
    request_id = _uuid_module.uuid4().hex
    amount = gateway_amount(order)

    body: dict = {
        "partnerCode": settings.MOMO_PARTNER_CODE,
        "accessKey": settings.MOMO_ACCESS_KEY,
        "requestId": request_id,
        "amount": int(amount),
        "orderId": reference,
        "orderInfo": payload.order_info or f"Thanh toán đơn hàng {order.order_number}",
        "redirectUrl": payload.redirect_url,
        "ipnUrl": payload.ipn_url,
        "extraData": "",
        "requestType": "captureWallet",
        "lang": "vi",
    }
    body["signature"] = momo_sign(body, MOMO_CREATE_FIELDS, settings.MOMO_SECRET_KEY)

    try:
        async with httpx.AsyncClient(timeout=15.0) as client:
            resp = await client.post(settings.MOMO_ENDPOINT, json=body)
            resp.raise_for_status()
            momo_resp = resp.json()
    except httpx.HTTPStatusError as exc:
        logger.error("MoMo API error: %s", exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Lỗi từ cổng MoMo")
    except httpx.RequestError as exc:
        logger.error("MoMo connection error: %s", exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Không kết nối được MoMo")

    if momo_resp.get("resultCode", -1) != 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"MoMo từ chối: {momo_resp.get('message', 'Lỗi không xác định')}",
        )

    payment = Payment(
        amount=amount,
        gateway=PaymentGateway.MOMO,
        note=body["orderInfo"],
        reference=reference,
        order_id=order.id,
        store_id=current_user.store_id,
        processed_by=current_user.id,
        status=PaymentStatus.PENDING,
    )
    db.add(payment)
    await db.commit()
    await db.refresh(payment)

    logger.info("MoMo payment created: payment=%s reference=%s", payment.id, reference)
    return MoMoCreateResponse(
        payment_id=payment.id,
        pay_url=momo_resp.get("payUrl"),
        deeplink=momo_resp.get("deeplink"),
        qr_code_url=momo_resp.get("qrCodeUrl"),
        request_id=request_id,
    )


@router.post("/momo/ipn")
async def momo_ipn(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """MoMo IPN: JSON body with the transaction result and an HMAC-SHA256 signature."""
    try:
        data: dict = await request.json()
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON body")

    reference: str = data.get("orderId", "")
    if not momo_verify_signature(data, settings.MOMO_SECRET_KEY):
        logger.warning("MoMo IPN: invalid signature for orderId=%s", reference)
        return {"resultCode": 97, "message": "Invalid signature"}

    payment = await _find_by_reference(db, reference)
    if payment is None:
        logger.warning("MoMo IPN: payment not found for orderId=%s", reference)
        return {"resultCode": 1, "message": "Order not found"}

    if payment.status != PaymentStatus.PENDING:
        return {"resultCode": 0, "message": "Already confirmed"}

    received_amount = Decimal(str(data.get("amount", 0)))
    if received_amount != payment.amount:
        logger.warning(
            "MoMo IPN: amount mismatch payment=%s got=%s expected=%s",
            payment.id, received_amount, payment.amount,
        )
        return {"resultCode": 4, "message": "Invalid amount"}

    succeeded = int(data.get("resultCode", -1)) == 0
    new_status = PaymentStatus.COMPLETED if succeeded else PaymentStatus.FAILED
    await _finalize_payment(db, payment, str(data.get("transId", "")), new_status, data)

    logger.info("MoMo IPN processed: payment=%s status=%s", payment.id, new_status.value)
    return {"resultCode": 0, "message": "success"}
