"""Display formatting for quotation figures."""

_SYMBOLS = {"ILS": "₪", "NIS": "₪", "USD": "$", "EUR": "€"}


def format_number(value: float, decimals: int = 2) -> str:
    return f"{value:,.{decimals}f}"


def format_currency(amount: float, currency: str) -> str:
    symbol = _SYMBOLS.get(currency.upper(), currency.upper() + " ")
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{format_number(abs(amount))}"


def format_percent(value: float) -> str:
    return f"{value:.1f}%"
