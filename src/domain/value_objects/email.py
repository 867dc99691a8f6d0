"""Email normalization for deduplication.

Every email that is compared for uniqueness or persisted goes through
`normalize_email` first, so ``A.B+tag@Gmail.com`` and ``ab@gmail.com`` resolve
to the same account.

Normalization never raises: input that is not a syntactically valid address
yields the `INVALID_EMAIL` marker, which the credential validator reports as a
field error.
"""

from typing import Final, FrozenSet

from email_validator import EmailNotValidError, validate_email
from structlog import get_logger

logger = get_logger(__name__)

INVALID_EMAIL: Final = "email not valid"

# Providers that ignore dots in the local part and treat "+suffix" as an alias.
ALIAS_FOLDING_DOMAINS: Final[FrozenSet[str]] = frozenset({"gmail.com", "googlemail.com"})


def is_valid_email(value: str, check_deliverability: bool = False) -> bool:
    """Return True when `value` is a well-formed address.

    Args:
        value: Address to check, already trimmed.
        check_deliverability: Also require the domain to resolve (MX or A
            record). Performs DNS lookups.
    """
    try:
        validate_email(value, check_deliverability=check_deliverability)
    except EmailNotValidError:
        return False
    return True


def normalize_email(raw: str) -> str:
    """Canonicalize an email address.

    Trims surrounding whitespace and lower-cases the address. For Gmail
    addresses all ``.`` characters are removed from the local part and the
    first ``+`` and everything after it are dropped. Other domains are only
    trimmed and lower-cased.

    Args:
        raw: Address as submitted by the client.

    Returns:
        The canonical address, or `INVALID_EMAIL` when `raw` is not an address.
    """
    if not isinstance(raw, str):
        return INVALID_EMAIL

    email = raw.strip().lower()
    if not is_valid_email(email):
        logger.debug("email_normalization_rejected")
        return INVALID_EMAIL

    local, domain = email.rsplit("@", 1)
    if domain in ALIAS_FOLDING_DOMAINS:
        local = local.replace(".", "").split("+", 1)[0]
        folded = f"{local}@{domain}"
        # Folding can leave nothing usable, e.g. "+tag@gmail.com".
        if not is_valid_email(folded):
            logger.debug("email_normalization_rejected")
            return INVALID_EMAIL
        return folded

    return email
