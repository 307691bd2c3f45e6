"""
Error taxonomy for the saju engine.

Every failure raised by the core carries a machine-readable ``code`` and a
``details`` dict naming the computation that failed and the inputs it saw.
Presentation of failures belongs to the calling layer.

- InvalidInputError:    malformed calendar date/time/gender. Raised while
                        building a BirthMoment, before any calculation runs.
- TermNotFoundError:    the bounded solar-term search found no crossing.
                        Deterministic, so never retried.
- IndexOutOfRangeError: an internal index left [0,60) / [0,10) / [0,12).
"""

from typing import Optional


class SajuError(Exception):
    """Base class for all structured engine errors."""

    code = "CALCULATION_FAILED"

    def __init__(self, message: str, code: Optional[str] = None, **details):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "details": {k: _plain(v) for k, v in self.details.items()},
        }

    def __str__(self):
        if not self.details:
            return f"[{self.code}] {self.message}"
        extra = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
        return f"[{self.code}] {self.message} ({extra})"


class InvalidInputError(SajuError, ValueError):
    code = "INVALID_INPUT"


class TermNotFoundError(SajuError, RuntimeError):
    code = "TERM_NOT_FOUND"


class IndexOutOfRangeError(SajuError, AssertionError):
    code = "INDEX_OUT_OF_RANGE"


def require_index(value: int, modulus: int, what: str) -> int:
    """Return ``value`` unchanged if it lies in [0, modulus)."""
    if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value < modulus:
        raise IndexOutOfRangeError(
            f"{what} index outside [0, {modulus})",
            computation=what, value=value, modulus=modulus,
        )
    return value


def _plain(value):
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)
