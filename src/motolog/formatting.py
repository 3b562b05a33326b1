from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional


@dataclass(frozen=True)
class Currency:
    code: str
    symbol: str
    name: str
    decimals: int = 2


CURRENCIES: Dict[str, Currency] = {
    c.code: c
    for c in (
        Currency("USD", "$", "US Dollar"),
        Currency("EUR", "€", "Euro"),
        Currency("GBP", "£", "British Pound"),
        Currency("IDR", "Rp", "Indonesian Rupiah"),
        Currency("JPY", "¥", "Japanese Yen"),
        Currency("BRL", "R$", "Brazilian Real"),
        Currency("INR", "₹", "Indian Rupee"),
    )
}


def get_currency(code: Optional[str]) -> Currency:
    """Look up a currency; unknown codes fall back to USD."""
    return CURRENCIES.get((code or "").upper(), CURRENCIES["USD"])


def format_money(amount: float, code: Optional[str] = "USD") -> str:
    c = get_currency(code)
    sign = "-" if amount < 0 else ""
    return f"{sign}{c.symbol}{abs(amount):,.{c.decimals}f}"


def format_number(value: float, digits: int = 2) -> str:
    return f"{value:,.{digits}f}"


def format_duration(ms: int) -> str:
    """'45m', '1h 5m' or '2h'."""
    mins = max(0, int(ms)) // 60_000
    if mins < 60:
        return f"{mins}m"
    hrs, rem = divmod(mins, 60)
    return f"{hrs}h {rem}m" if rem else f"{hrs}h"


def format_timestamp(ms: int) -> str:
    """Epoch ms as local 'YYYY-MM-DD HH:MM'."""
    return datetime.fromtimestamp(ms / 1000.0).strftime("%Y-%m-%d %H:%M")
