import re
from typing import Iterable, List, Optional

# Invalid user input base error
class InvalidTarget(ValueError):
    """Base error for invalid user input targets."""

# Invalid hostname
class InvalidHostname(InvalidTarget):
    """Raised when a target is not a valid hostname."""

# Invalid query type
class InvalidQueryType(InvalidTarget):
    """Raised when a DNS query type is not something dig understands."""

# Normalize the user input by trimming white space, removing trailing dots and turning it into lower case.
def normalize_target(raw: str) -> str:
    return (raw or "").strip().rstrip(".").lower()

# Check the hostname format only, not existence
_LABEL = re.compile(r"^_?[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$")
def is_hostname(s: str) -> bool:
    if not s or len(s) > 253 or any(c.isspace() for c in s):
        return False

    labels = s.split(".")
    if any(label == "" or len(label) > 63 for label in labels):
        return False

    return all(_LABEL.match(label) for label in labels)

# normalizes text and checks to see if it is a hostname
def require_hostname(raw: str) -> str:
    s = normalize_target(raw)
    if not is_hostname(s):
        raise InvalidHostname(f"Invalid hostname format: {raw!r}")
    return s

# Query types are passed straight to dig, so keep them to plain mnemonics (A, AAAA, TXT, TYPE65, ...)
_QTYPE = re.compile(r"^[A-Z][A-Z0-9]{0,15}$")
def require_query_type(raw: Optional[str]) -> Optional[str]:
    if raw is None or not raw.strip():
        return None
    q = raw.strip().upper()
    if not _QTYPE.match(q):
        raise InvalidQueryType(f"Invalid query type: {raw!r}")
    return q

# Expected values keep their case (TXT content), only surrounding space is trimmed
def clean_expected(raw: Optional[Iterable[str]]) -> List[str]:
    return [v.strip() for v in (raw or []) if v and v.strip()]
