"""Phone number helpers."""

MIN_PHONE_DIGITS = 7
MAX_PHONE_DIGITS = 15


def digits_only(phone: str) -> str:
    """Strip everything but digits, the form the WhatsApp API expects."""
    return "".join(filter(str.isdigit, phone))


def normalize_phone(phone: str) -> str:
    """Normalize a phone number to ``+<digits>``.

    Raises:
        ValueError: If the number has too few or too many digits
    """
    digits = digits_only(phone or "")
    if not MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS:
        raise ValueError(
            f"Phone number must contain between {MIN_PHONE_DIGITS} and {MAX_PHONE_DIGITS} digits"
        )
    return f"+{digits}"
