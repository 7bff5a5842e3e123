"""
Storage key derivation.

Every record and holding lives at a key computed from a fixed scheme:

    key = SHA256(seed_label || version_byte || auction_id || sub_index)

The same logical entity always maps to the same key on every executor.
The program state singleton is the exception: it is keyed by its label
alone so that it survives key-version upgrades.
"""

from multiauction.core.config import KEY_VERSION
from multiauction.crypto import sha256

PROGRAM_STATE_SEED = b"auction_state"
AUCTION_SEED = b"auction"
ESCROW_SEED = b"escrow"
ITEM_SEED = b"item"
ITEM_VAULT_SEED = b"item_vault"
FEE_VAULT_SEED = b"fee_vault"

# Owner tag recorded on every account this engine creates
PROGRAM_OWNER_TAG = "multiauction"


def derive_key(seed: bytes, *parts: bytes, version: int = KEY_VERSION) -> bytes:
    """Derive a versioned 32-byte key from a seed label and parts."""
    return sha256(seed + bytes([version]) + b"".join(parts))


def program_state_key() -> bytes:
    return sha256(PROGRAM_STATE_SEED)


def auction_key(auction_id: bytes) -> bytes:
    return derive_key(AUCTION_SEED, auction_id)


def escrow_key(auction_id: bytes) -> bytes:
    return derive_key(ESCROW_SEED, auction_id)


def item_key(auction_id: bytes, index: int) -> bytes:
    return derive_key(ITEM_SEED, auction_id, bytes([index]))


def item_vault_key(auction_id: bytes, asset_class: bytes) -> bytes:
    return derive_key(ITEM_VAULT_SEED, auction_id, asset_class)


def fee_vault_key(payment_denomination: bytes) -> bytes:
    return derive_key(FEE_VAULT_SEED, payment_denomination)
