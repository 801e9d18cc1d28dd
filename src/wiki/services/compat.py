"""Browser compatibility gate."""

from dataclasses import dataclass

from django.conf import settings
from user_agents import parse

# Family names as reported by ua-parser
DEFAULT_MIN_BROWSERS = (
    ("IE", "10.0"),
    ("Chrome", "7.0"),
    ("Firefox", "4.0"),
)

UNKNOWN_FAMILY = "Other"


@dataclass(frozen=True)
class ClientIdentity:
    """Browser family and version parsed from a User-Agent header."""

    family: str
    version: tuple[int, ...]


def parse_version(value) -> tuple[int, ...]:
    """Turn ``"10.0"`` or ``(10, 0, "b1")`` into a tuple of leading integers."""
    parts = value.split(".") if isinstance(value, str) else list(value)
    version = []
    for part in parts:
        if isinstance(part, int):
            version.append(part)
        elif isinstance(part, str) and part.isdigit():
            version.append(int(part))
        else:
            break
    return tuple(version)


def _compare(left: tuple[int, ...], right: tuple[int, ...]) -> int:
    width = max(len(left), len(right))
    left = left + (0,) * (width - len(left))
    right = right + (0,) * (width - len(right))
    return (left > right) - (left < right)


def parse_client(user_agent: str | None) -> ClientIdentity | None:
    """Parse a User-Agent header, or return None when the browser is not recognized."""
    if not user_agent:
        return None
    browser = parse(user_agent).browser
    if not browser.family or browser.family == UNKNOWN_FAMILY:
        return None
    return ClientIdentity(family=browser.family, version=parse_version(browser.version))


class CompatibilityGate:
    """Rejects recognized browsers older than a minimum version.

    Clients whose browser cannot be parsed are always supported. A recognized
    browser with no minimum configured for its family is rejected.
    """

    def __init__(self, minimums=DEFAULT_MIN_BROWSERS):
        self.minimums = tuple((family, parse_version(version)) for family, version in minimums)

    def is_client_supported(self, client: ClientIdentity | None) -> bool:
        if client is None:
            return True
        return any(
            family == client.family and _compare(minimum, client.version) <= 0
            for family, minimum in self.minimums
        )

    def is_supported(self, user_agent: str | None) -> bool:
        return self.is_client_supported(parse_client(user_agent))


_gate: CompatibilityGate | None = None


def get_compatibility_gate() -> CompatibilityGate:
    """Get the process-wide gate built from ``WIKI_MIN_BROWSERS``."""
    global _gate
    if _gate is None:
        _gate = CompatibilityGate(getattr(settings, "WIKI_MIN_BROWSERS", DEFAULT_MIN_BROWSERS))
    return _gate
