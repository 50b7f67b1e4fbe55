"""Core storage - artifact export for reports."""

from core.storage.artifacts import (
    put_json,
    get_json,
    put_csv,
    get_csv,
)

__all__ = [
    "put_json",
    "get_json",
    "put_csv",
    "get_csv",
]
