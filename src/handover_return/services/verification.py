"""Verification codes proving both counterparties are present."""

import hmac
import secrets
from collections.abc import Callable
from dataclasses import dataclass

_MAX_ATTEMPTS = 20


@dataclass
class VerificationCodeIssuer:
    """Issues and checks short numeric codes for sessions.

    ``code_in_use`` reports whether a code is held by any active session so
    that issued codes stay unique among live sessions.
    """

    code_in_use: Callable[[str], bool]
    digits: int = 6

    def issue(self) -> str:
        """Return a random code not held by any active session."""
        for _ in range(_MAX_ATTEMPTS):
            code = _random_code(self.digits)
            if not self.code_in_use(code):
                return code
        raise RuntimeError("Could not allocate a unique verification code")

    def validate(self, stored_code: object, candidate: object) -> bool:
        """Compare a candidate against the stored code in constant time.

        Any malformed input, or a code that was already consumed, fails
        closed.
        """
        if not isinstance(stored_code, str) or not stored_code:
            return False
        if not isinstance(candidate, str):
            return False
        cleaned = candidate.strip()
        if not cleaned or not cleaned.isascii():
            return False
        return hmac.compare_digest(stored_code.encode(), cleaned.encode())


def _random_code(digits: int) -> str:
    return f"{secrets.randbelow(10**digits):0{digits}d}"
