"""One-time codes that gate the start of a ride."""

import hmac
import secrets

from django.conf import settings

MIN_OTP_LENGTH = 4
MAX_OTP_LENGTH = 6


def issue_otp(length: int = None) -> str:
    """Return a fresh zero-padded numeric code of 4 to 6 digits."""
    if length is None:
        length = getattr(settings, "RIDE_OTP_LENGTH", MIN_OTP_LENGTH)
    length = max(MIN_OTP_LENGTH, min(MAX_OTP_LENGTH, int(length)))
    return f"{secrets.randbelow(10 ** length):0{length}d}"


def verify_otp(bound_code: str, presented) -> bool:
    """Exact match after trimming whitespace from the presented code."""
    normalized = "" if presented is None else str(presented).strip()
    if not normalized or not bound_code:
        return False
    return hmac.compare_digest(bound_code.encode(), normalized.encode())
