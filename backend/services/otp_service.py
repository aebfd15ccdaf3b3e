# backend/services/otp_service.py
import secrets
from typing import Dict

OTP_DIGITS = 6


class OTPStore:
    """Pending signup codes keyed by email.

    Lives for the whole process. Codes never expire; requesting again for the
    same email replaces the pending one, and a successful check consumes it.
    """

    def __init__(self):
        self._codes: Dict[str, str] = {}

    def request_code(self, email: str) -> str:
        code = f"{secrets.randbelow(10 ** OTP_DIGITS):0{OTP_DIGITS}d}"
        self._codes[email] = code
        return code

    def verify_code(self, email: str, submitted: str) -> bool:
        code = self._codes.get(email)
        if code is None or code != submitted:
            return False
        del self._codes[email]
        return True

    def discard(self, email: str):
        self._codes.pop(email, None)

    def clear(self):
        self._codes.clear()

    def __len__(self) -> int:
        return len(self._codes)


otp_store = OTPStore()
