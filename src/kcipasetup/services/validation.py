"""Operator input validation helpers for kcipasetup."""

import re
from typing import Optional

from kcipasetup.constants import HOSTNAME_PATTERN
from kcipasetup.errors import InvalidInputError
from kcipasetup.errors_catalog import actionable_error

_HOSTNAME_RE = re.compile(HOSTNAME_PATTERN)


def is_valid_hostname(value: str) -> bool:
    # fullmatch so a trailing newline cannot slip past ``$``
    return bool(value) and _HOSTNAME_RE.fullmatch(value) is not None


def validate_hostname(value: Optional[str], label: str = "hostname") -> str:
    if value is None or not is_valid_hostname(value):
        raise InvalidInputError(actionable_error("invalid_hostname", label=label, value=str(value)))
    return value
