"""VND money and Vietnamese date formatting."""

import re
import unicodedata
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CURRENCY_SYMBOL = "₫"

_DIGITS = ["không", "một", "hai", "ba", "bốn", "năm", "sáu", "bảy", "tám", "chín"]
_SCALES = ["", "nghìn", "triệu", "tỷ", "nghìn tỷ", "triệu tỷ"]


def _whole_dong(amount) -> int:
    return int(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_vnd(amount) -> str:
    """``1234567`` -> ``"1.234.567 ₫"``."""
    value = _whole_dong(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}{abs(value):,}".replace(",", ".") + f" {CURRENCY_SYMBOL}"


def format_vnd_compact(amount) -> str:
    value = Decimal(str(amount))
    for threshold, suffix in ((Decimal("1e9"), "B"), (Decimal("1e6"), "M"), (Decimal("1e3"), "K")):
        if value >= threshold:
            scaled = (value / threshold).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
            return f"{scaled}{suffix} {CURRENCY_SYMBOL}"
    return format_vnd(value)


def parse_vnd(text: str) -> Decimal:
    """Parse ``"1.234.567 ₫"`` / ``"50,000đ"`` back to a Decimal. Garbage parses to 0."""
    if not text:
        return Decimal("0")
    cleaned = text.replace(CURRENCY_SYMBOL, "").replace("đ", "").replace("Đ", "")
    cleaned = "".join(cleaned.split()).replace(".", "").replace(",", "")
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return Decimal("0")


def calculate_change(total, received) -> Decimal:
    change = Decimal(str(received)) - Decimal(str(total))
    return max(change, Decimal("0"))


def _read_triple(number: int, full: bool) -> list[str]:
    hundreds, rest = divmod(number, 100)
    tens, units = divmod(rest, 10)
    words: list[str] = []

    if hundreds or full:
        words += [_DIGITS[hundreds], "trăm"]

    if tens == 0:
        if units:
            if hundreds or full:
                words.append("linh")
            words.append(_DIGITS[units])
    elif tens == 1:
        words.append("mười")
        if units == 5:
            words.append("lăm")
        elif units:
            words.append(_DIGITS[units])
    else:
        words += [_DIGITS[tens], "mươi"]
        if units == 1:
            words.append("mốt")
        elif units == 4:
            words.append("tư")
        elif units == 5:
            words.append("lăm")
        elif units:
            words.append(_DIGITS[units])
    return words


def amount_in_words(amount) -> str:
    """Vietnamese reading of a VND amount, e.g. ``"một trăm nghìn đồng"``."""
    value = _whole_dong(amount)
    if value == 0:
        return "không đồng"

    prefix = ["âm"] if value < 0 else []
    value = abs(value)

    groups: list[int] = []
    while value:
        value, group = divmod(value, 1000)
        groups.append(group)
    if len(groups) > len(_SCALES):
        raise ValueError("Số tiền quá lớn để đọc thành chữ")

    words: list[str] = []
    top = len(groups) - 1
    for index in range(top, -1, -1):
        group = groups[index]
        if group == 0:
            continue
        words += _read_triple(group, full=index != top)
        if _SCALES[index]:
            words.append(_SCALES[index])
    return " ".join(prefix + words + ["đồng"])


def format_date(value: date) -> str:
    return value.strftime("%d/%m/%Y")


def format_datetime(value: datetime) -> str:
    return value.strftime("%d/%m/%Y %H:%M")


def format_time(value: datetime) -> str:
    return value.strftime("%H:%M")


def format_relative_time(value: datetime, now: datetime | None = None) -> str:
    if now is None:
        now = datetime.now(value.tzinfo)
    seconds = (now - value).total_seconds()
    minutes = int(seconds // 60)
    if minutes < 1:
        return "Vừa xong"
    if minutes < 60:
        return f"{minutes} phút trước"
    hours = minutes // 60
    if hours < 24:
        return f"{hours} giờ trước"
    days = hours // 24
    if days < 7:
        return f"{days} ngày trước"
    return format_date(value)


def slugify(text: str) -> str:
    """``"Đồ uống có cồn"`` -> ``"do-uong-co-con"``."""
    text = text.replace("đ", "d").replace("Đ", "D")
    ascii_text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]+", "-", ascii_text.lower()).strip("-")
