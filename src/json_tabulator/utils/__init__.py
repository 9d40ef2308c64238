"""Utility functions for the JSON Tabulator."""

from .cache import LRUCache, SignatureCache, TypeCache
from .validation import ValidationUtils

__all__ = ["LRUCache", "SignatureCache", "TypeCache", "ValidationUtils"]
