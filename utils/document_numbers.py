def _next_number(prefix: str, existing_count: int, width: int) -> str:
    if existing_count < 0:
        raise ValueError(f"existing_count must not be negative, got {existing_count}")
    return f"{prefix}-{existing_count + 1:0{width}d}"


def generate_invoice_number(existing_count: int) -> str:
    """INV-0001 style numbers from the count of invoices already stored."""
    return _next_number("INV", existing_count, 4)


def generate_quote_number(existing_count: int) -> str:
    return _next_number("QUO", existing_count, 4)


def generate_payment_number(existing_count: int) -> str:
    return _next_number("PAY", existing_count, 6)
