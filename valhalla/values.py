"""Column values bound to positional statement parameters.

Every parameter the client sends is one of four kinds. Each kind encodes
itself to the value handed to asyncpg:

    Text       -> str
    Integer    -> int
    Timestamp  -> ISO-8601 text in UTC, e.g. "2026-10-17T05:42:00.000Z"
    Json       -> JSON text

``None`` always encodes to SQL NULL. Timestamps reach the server as text
because each pooled connection registers a text-format timestamptz codec
(see valhalla.database.init_connection).
"""

import json
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Sequence, Union


def to_iso(value: datetime) -> str:
    """Canonical text form for timestamps. Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


@dataclass(frozen=True)
class Text:
    value: Union[str, uuid.UUID, None]

    def encode(self) -> Optional[str]:
        return None if self.value is None else str(self.value)


@dataclass(frozen=True)
class Integer:
    value: Optional[int]

    def encode(self) -> Optional[int]:
        return None if self.value is None else int(self.value)


@dataclass(frozen=True)
class Timestamp:
    value: Optional[datetime]

    def encode(self) -> Optional[str]:
        return None if self.value is None else to_iso(self.value)


@dataclass(frozen=True)
class Json:
    value: Any

    def encode(self) -> Optional[str]:
        if self.value is None:
            return None
        return json.dumps(self.value, default=str)


ColumnValue = Union[Text, Integer, Timestamp, Json]

_KINDS = (Text, Integer, Timestamp, Json)


def encode_params(values: Sequence[ColumnValue]) -> list:
    """Encode column values in order for ``$1..$n`` binding."""
    encoded = []
    for position, value in enumerate(values, start=1):
        if not isinstance(value, _KINDS):
            raise TypeError(
                f"parameter ${position} must be Text, Integer, Timestamp or Json, "
                f"got {type(value).__name__}"
            )
        encoded.append(value.encode())
    return encoded
