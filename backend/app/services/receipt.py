"""Receipt (hóa đơn bán lẻ) rendering for 58mm/80mm thermal printers."""

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from app.services.formatting import amount_in_words, format_datetime, format_vnd

LINE_WIDTH = 32

PAYMENT_LABELS = {
    "cash": "Tiền mặt",
    "card": "Thẻ",
    "transfer": "Chuyển khoản",
    "momo": "Ví MoMo",
    "vnpay": "VNPay",
}


class ReceiptLine(BaseModel):
    """Single line in receipt."""
    text: str
    align: Literal["left", "center", "right"] = "left"
    bold: bool = False
    double_height: bool = False
    double_width: bool = False


class ReceiptItem(BaseModel):
    name: str
    quantity: int
    unit_price: Decimal
    total: Decimal
    vat_rate: Decimal = Decimal("0")
    vat_amount: Decimal = Decimal("0")
    excise_amount: Decimal = Decimal("0")


class ReceiptData(BaseModel):
    """Everything printed on a receipt, already resolved from the order."""
    store_name: str
    store_address: str | None = None
    store_phone: str | None = None
    store_tax_id: str | None = None
    header_message: str | None = None

    order_number: str
    order_date: datetime
    cashier_name: str
    status: str = "completed"

    customer_name: str | None = None
    customer_phone: str | None = None

    items: list[ReceiptItem]

    subtotal: Decimal
    excise_amount: Decimal = Decimal("0")
    vat_amount: Decimal = Decimal("0")
    discount_amount: Decimal = Decimal("0")
    points_redeemed: int = 0
    points_discount: Decimal = Decimal("0")
    total: Decimal
    cash_rounding: Decimal = Decimal("0")
    amount_due: Decimal

    payment_method: str | None = None
    amount_paid: Decimal | None = None
    change: Decimal | None = None
    points_earned: int = 0

    note: str | None = None
    footer_message: str = Field(default="Cảm ơn quý khách!")


def _pair(label: str, value: str, width: int = LINE_WIDTH) -> str:
    """Label left, value right, padded to the paper width."""
    gap = max(width - len(label) - len(value), 1)
    return f"{label}{' ' * gap}{value}"


def _vat_groups(items: list[ReceiptItem]) -> list[tuple[Decimal, Decimal]]:
    groups: dict[Decimal, Decimal] = defaultdict(Decimal)
    for item in items:
        if item.vat_amount:
            groups[item.vat_rate] += item.vat_amount
    return sorted(groups.items())


def generate_receipt_lines(receipt_data: ReceiptData) -> list[ReceiptLine]:
    lines: list[ReceiptLine] = []
    rule = "-" * LINE_WIDTH
    double_rule = "=" * LINE_WIDTH

    # Header
    lines.append(ReceiptLine(
        text=receipt_data.store_name,
        align="center",
        bold=True,
        double_width=True,
    ))
    if receipt_data.store_address:
        lines.append(ReceiptLine(text=receipt_data.store_address, align="center"))
    if receipt_data.store_phone:
        lines.append(ReceiptLine(text=f"ĐT: {receipt_data.store_phone}", align="center"))
    if receipt_data.store_tax_id:
        lines.append(ReceiptLine(text=f"MST: {receipt_data.store_tax_id}", align="center"))
    if receipt_data.header_message:
        lines.append(ReceiptLine(text=receipt_data.header_message, align="center"))

    lines.append(ReceiptLine(text=double_rule, align="center"))
    lines.append(ReceiptLine(text="HÓA ĐƠN BÁN LẺ", align="center", bold=True))
    if receipt_data.status in ("voided", "refunded"):
        label = "ĐÃ HỦY" if receipt_data.status == "voided" else "ĐÃ HOÀN TIỀN"
        lines.append(ReceiptLine(text=f"*** {label} ***", align="center", bold=True))

    lines.append(ReceiptLine(text=f"Số: {receipt_data.order_number}"))
    lines.append(ReceiptLine(text=f"Ngày: {format_datetime(receipt_data.order_date)}"))
    lines.append(ReceiptLine(text=f"Thu ngân: {receipt_data.cashier_name}"))
    if receipt_data.customer_name:
        lines.append(ReceiptLine(text=f"Khách: {receipt_data.customer_name}"))
    if receipt_data.customer_phone:
        lines.append(ReceiptLine(text=f"SĐT: {receipt_data.customer_phone}"))

    lines.append(ReceiptLine(text=rule))

    # Items
    for item in receipt_data.items:
        lines.append(ReceiptLine(text=item.name))
        lines.append(ReceiptLine(text=_pair(
            f"  {item.quantity} x {format_vnd(item.unit_price)}",
            format_vnd(item.total),
        )))

    lines.append(ReceiptLine(text=rule))

    # Totals
    lines.append(ReceiptLine(text=_pair("Tiền hàng:", format_vnd(receipt_data.subtotal))))
    if receipt_data.excise_amount > 0:
        lines.append(ReceiptLine(text=_pair("Thuế TTĐB:", format_vnd(receipt_data.excise_amount))))
    for rate, amount in _vat_groups(receipt_data.items):
        lines.append(ReceiptLine(text=_pair(f"Thuế GTGT {rate.normalize():f}%:", format_vnd(amount))))
    if receipt_data.discount_amount > 0:
        lines.append(ReceiptLine(text=_pair("Giảm giá:", f"-{format_vnd(receipt_data.discount_amount)}")))
    if receipt_data.points_discount > 0:
        lines.append(ReceiptLine(text=_pair(
            f"Đổi {receipt_data.points_redeemed} điểm:",
            f"-{format_vnd(receipt_data.points_discount)}",
        )))
    if receipt_data.cash_rounding != 0:
        lines.append(ReceiptLine(text=_pair("Làm tròn:", format_vnd(receipt_data.cash_rounding))))

    lines.append(ReceiptLine(text=double_rule))
    lines.append(ReceiptLine(
        text=_pair("TỔNG CỘNG:", format_vnd(receipt_data.amount_due)),
        bold=True,
        double_height=True,
    ))
    lines.append(ReceiptLine(text=f"({amount_in_words(receipt_data.amount_due).capitalize()})"))

    # Payment
    lines.append(ReceiptLine(text=rule))
    if receipt_data.payment_method:
        method = PAYMENT_LABELS.get(receipt_data.payment_method, receipt_data.payment_method)
        lines.append(ReceiptLine(text=f"Thanh toán: {method}"))
    if receipt_data.amount_paid:
        lines.append(ReceiptLine(text=_pair("Khách đưa:", format_vnd(receipt_data.amount_paid))))
    if receipt_data.change and receipt_data.change > 0:
        lines.append(ReceiptLine(text=_pair("Tiền thừa:", format_vnd(receipt_data.change))))
    if receipt_data.points_earned:
        lines.append(ReceiptLine(text=f"Điểm tích lũy: +{receipt_data.points_earned}"))

    if receipt_data.note:
        lines.append(ReceiptLine(text=rule))
        lines.append(ReceiptLine(text=f"Ghi chú: {receipt_data.note}"))

    # Footer
    lines.append(ReceiptLine(text=double_rule))
    lines.append(ReceiptLine(text=receipt_data.footer_message, align="center", bold=True))
    lines.append(ReceiptLine(text=" "))  # Blank line for printer to cut

    return lines


def format_receipt_text(receipt_data: ReceiptData) -> str:
    """Generate plain text receipt for preview/testing."""
    lines = generate_receipt_lines(receipt_data)
    return "\n".join(line.text for line in lines)


def generate_esc_pos_commands(receipt_data: ReceiptData) -> bytes:
    """
    Generate ESC/POS commands for thermal printer.
    Text is sent as UTF-8; printers without a Vietnamese code page need a bitmap driver.
    """
    lines = generate_receipt_lines(receipt_data)

    ESC = b'\x1b'
    GS = b'\x1d'

    commands = ESC + b'@'  # initialize

    for line in lines:
        if line.align == "center":
            commands += ESC + b'a\x01'
        elif line.align == "right":
            commands += ESC + b'a\x02'
        else:
            commands += ESC + b'a\x00'

        commands += ESC + (b'E\x01' if line.bold else b'E\x00')

        if line.double_height and line.double_width:
            commands += GS + b'!\x30'
        elif line.double_height:
            commands += GS + b'!\x10'
        elif line.double_width:
            commands += GS + b'!\x20'
        else:
            commands += GS + b'!\x00'

        commands += line.text.encode('utf-8') + b'\n'

    commands += GS + b'V\x00'  # full cut

    return commands
