"""Payload base classes shared by every entity kind."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

__all__ = ["NamedWeight", "BytesWeight", "OtherWeight"]


@dataclass(slots=True)
class NamedWeight:
    name: Optional[str] = None
    extras: Any = None


@dataclass(slots=True)
class BytesWeight:
    """Opaque serialized payload, used for extension data."""

    data: bytes = b""


@dataclass(slots=True)
class OtherWeight:
    value: Any = None
