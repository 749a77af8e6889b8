import random
import string
import time

_ID_ALPHABET = string.ascii_lowercase + string.digits
_ID_SUFFIX_LEN = 9


def generate_id(prefix: str = "rec") -> str:
    """Create a record id of the form `<prefix>_<epoch ms>_<random suffix>`.

    Pure and stateless: uniqueness relies on the millisecond timestamp plus a
    9 character base-36 suffix, so concurrent callers need no coordination.
    Collisions are improbable, not impossible.
    """
    suffix = "".join(random.choices(_ID_ALPHABET, k=_ID_SUFFIX_LEN))
    return f"{prefix}_{time.time_ns() // 1_000_000}_{suffix}"


def normalize_email(email) -> str:
    """Normalize an email for use as an identity key (trimmed, lower case)."""
    return str(email or "").strip().lower()
