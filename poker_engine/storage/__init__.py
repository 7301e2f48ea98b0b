"""Store key layout."""

from poker_engine.storage.keys import KeyBuilder

__all__ = ["KeyBuilder"]
