"""Base classes for configuration and runtime state models.

Config and log both depend on these, so they live in their own
module:
- Closeable Protocol for anything holding resources
- BaseCloseable, a pydantic model that closes its children
- BaseConfig and BaseState as markers for the two kinds of model
"""

from __future__ import annotations

import sys
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


@runtime_checkable
class Closeable(Protocol):
    """Protocol for objects that support close()."""

    def close(self) -> None:
        ...


class BaseCloseable(BaseModel):
    """Pydantic model that closes every Closeable field on close().

    Usable as a context manager. A failing child does not stop the
    remaining children from being closed, so the chain
    Config.close() → Logger.close() → Sink.close() always runs to
    the end.
    """

    def close(self):
        """Close all closeable child fields."""
        for field_name in self.__class__.model_fields:
            child = getattr(self, field_name, None)
            if child is None:
                continue

            if isinstance(child, Closeable):
                try:
                    child.close()
                except Exception as e:
                    print(
                        f"Warning: Error closing {field_name}: {e}",
                        file=sys.stderr,
                    )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # noqa: U100
        self.close()
        return False


class BaseConfig(BaseCloseable):
    """Marker base for configuration models (YAML/env/CLI)."""
    pass


class BaseState(BaseCloseable):
    """Marker base for runtime state filled in by workflows."""
    pass


__all__ = ["Closeable", "BaseCloseable", "BaseConfig", "BaseState"]
