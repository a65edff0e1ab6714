import secrets
import string
from datetime import datetime
from typing import Optional

FOLIO_PREFIX = "SOL"
FOLIO_ALPHABET = string.ascii_uppercase + string.digits
FOLIO_SUFFIX_LENGTH = 8


def generate_folio(now: Optional[datetime] = None) -> str:
    """Build a folio such as ``SOL-20240131-7KQ2M9XA``.

    Uniqueness is enforced by the index on ``product_applications.folio``;
    callers regenerate when an insert collides.
    """
    now = now or datetime.utcnow()
    suffix = "".join(secrets.choice(FOLIO_ALPHABET) for _ in range(FOLIO_SUFFIX_LENGTH))
    return f"{FOLIO_PREFIX}-{now:%Y%m%d}-{suffix}"


def is_valid_folio(folio: str) -> bool:
    parts = folio.split("-") if folio else []
    if len(parts) != 3 or parts[0] != FOLIO_PREFIX:
        return False
    date_part, suffix = parts[1], parts[2]
    return (
        len(date_part) == 8 and date_part.isdigit()
        and len(suffix) == FOLIO_SUFFIX_LENGTH
        and all(ch in FOLIO_ALPHABET for ch in suffix)
    )
