"""Services for ci business logic."""

from collaborative_intelligence.services.key_resolver import (
    KeyResolver,
    MaskedKey,
    get_key_resolver,
    mask_key,
)
from collaborative_intelligence.services.key_store_service import (
    KeyStoreFile,
    load_key_store,
    save_key_store,
)

__all__ = [
    "KeyResolver",
    "get_key_resolver",
    "KeyStoreFile",
    "MaskedKey",
    "load_key_store",
    "mask_key",
    "save_key_store",
]
