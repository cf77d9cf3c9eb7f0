import re

from chatwarden.moderation.errors import InvalidDuration

_DURATION_PATTERN = re.compile(r"^(\d+)([smh])$")

UNIT_MILLISECONDS = {
    "s": 1000,
    "m": 60 * 1000,
    "h": 60 * 60 * 1000,
}


def parse_duration(text: str) -> int:
    """Convert a duration such as ``60s``, ``5m`` or ``1h`` to milliseconds.

    Returns 0 for anything that is not digits followed by one of ``s``, ``m``
    or ``h``. Callers must treat 0 as an invalid duration, never as a
    zero-length timeout; :func:`require_duration` does that check.
    """
    match = _DURATION_PATTERN.match(text.strip()) if isinstance(text, str) else None
    if match is None:
        return 0
    amount, unit = match.groups()
    return int(amount) * UNIT_MILLISECONDS[unit]


def require_duration(text: str) -> int:
    """Like :func:`parse_duration` but raises :class:`InvalidDuration` instead of returning 0."""
    milliseconds = parse_duration(text)
    if milliseconds == 0:
        raise InvalidDuration(text)
    return milliseconds


def format_duration(milliseconds: int) -> str:
    """Render milliseconds with the largest unit that divides it evenly (``300000`` -> ``5m``)."""
    for unit in ("h", "m", "s"):
        size = UNIT_MILLISECONDS[unit]
        if milliseconds >= size and milliseconds % size == 0:
            return f"{milliseconds // size}{unit}"
    return f"{milliseconds}ms"
