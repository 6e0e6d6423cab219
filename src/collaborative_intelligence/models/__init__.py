"""Data models for ci."""

from collaborative_intelligence.models.keystore import KeyMetadata, KeyScope, KeyStore

__all__ = [
    "KeyMetadata",
    "KeyScope",
    "KeyStore",
]
