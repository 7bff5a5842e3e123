"""
Hashing and identifier helpers.

Design Notes:
-------------
Storage keys are content-addressed with SHA-256 so that every executor
derives the same key for the same logical record. Signature verification
is not done here: whether an identity signed an operation is answered by
the external signer check.
"""

import hashlib
import secrets


# =============================================================================
# Hashing
# =============================================================================


def sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash.

    Used for: storage key derivation.
    """
    return hashlib.sha256(data).digest()


# =============================================================================
# Identifiers
# =============================================================================


def generate_auction_id() -> bytes:
    """Generate a random 32-byte auction identifier."""
    return secrets.token_bytes(32)


# =============================================================================
# Encoding
# =============================================================================


def short_hex(data: bytes, length: int = 8) -> str:
    """Abbreviated hex for log lines."""
    return data.hex()[:length] + "..."
