import secrets
import string
from datetime import datetime, timezone

# No 0/O or 1/I: codes are read aloud and typed by hand
CODE_ALPHABET = "".join(
    c for c in string.ascii_uppercase + string.digits if c not in "0O1I"
)


class Clock:
    """
    Time and identifier source for the services.
    Datetimes are naive UTC, matching how they are stored.
    """

    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)

    def new_code(self, length: int) -> str:
        return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


system_clock = Clock()


def get_clock() -> Clock:
    return system_clock


def normalize_code(raw: str) -> str:
    """Case-insensitive comparison: 'abc-123 ' and 'ABC123' are the same code."""
    return raw.strip().replace("-", "").replace(" ", "").upper()
