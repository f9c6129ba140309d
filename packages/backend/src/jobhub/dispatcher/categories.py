"""Job categories: each one owns a queue and requires exactly one tag.

Learn: Capability matching is a plain set-membership test: a worker is
eligible for a category when its advertised tags contain the category's
required tag. The enum order is the dispatch priority order.

Each category also knows how to turn a submission message into the
payload forwarded to the worker (validate + strip envelope fields).
"""

import math
from enum import Enum
from typing import Any

from jobhub.events.types import ENVELOPE_FIELDS


class BadArgumentsError(ValueError):
    """Raised when a submission fails category-specific validation."""
    pass


def strip_envelope(message: dict[str, Any]) -> dict[str, Any]:
    """Return the message without protocol-level fields."""
    return {k: v for k, v in message.items() if k not in ENVELOPE_FIELDS}


def _finite_number(value: Any) -> int | float:
    """Coerce an operand to a finite number or raise BadArgumentsError.

    Numeric strings are accepted ("2" → 2.0). Booleans and null are not.
    """
    if value is None or isinstance(value, bool):
        raise BadArgumentsError
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise BadArgumentsError from None
    else:
        raise BadArgumentsError
    if not math.isfinite(number):
        raise BadArgumentsError
    return number


class JobCategory(str, Enum):
    """Known job categories, in dispatch priority order."""

    CALC = "calc"
    IMAGE = "image"

    @property
    def tag(self) -> str:
        """Capability tag a worker must advertise to take these jobs."""
        return self.value

    @property
    def submit_type(self) -> str:
        if self is JobCategory.CALC:
            return "calc.add"
        return f"{self.value}.submit"

    @property
    def assign_type(self) -> str:
        return f"{self.value}.assign"

    @property
    def done_type(self) -> str:
        return f"{self.value}.done"

    def build_payload(self, message: dict[str, Any]) -> dict[str, Any]:
        """Validate a submission and return the payload sent on assignment.

        Raises:
            BadArgumentsError: required fields are missing or invalid.
        """
        if self is JobCategory.CALC:
            try:
                a = _finite_number(message.get("a"))
                b = _finite_number(message.get("b"))
            except BadArgumentsError:
                raise BadArgumentsError("a,b must be numbers") from None
            return {"op": "add", "a": a, "b": b}
        return strip_envelope(message)

    @classmethod
    def from_submit_type(cls, message_type: str) -> "JobCategory | None":
        return _BY_SUBMIT.get(message_type)

    @classmethod
    def from_done_type(cls, message_type: str) -> "JobCategory | None":
        return _BY_DONE.get(message_type)


_BY_SUBMIT = {c.submit_type: c for c in JobCategory}
_BY_DONE = {c.done_type: c for c in JobCategory}
