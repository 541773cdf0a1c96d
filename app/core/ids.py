"""Canonical entity identifiers.

Every primary key is a UUID. Identifiers reach the service layer as path
segments, JWT subjects and database values; they are always folded into
``uuid.UUID`` before comparison so that ``"0F1E..."``, ``"0f1e..."``,
``"{0f1e...}"`` and ``urn:uuid:0f1e...`` are the same entity.
"""

from __future__ import annotations

import uuid

from app.core.errors import ValidationFailed

EntityId = uuid.UUID


def canonical_id(value: object) -> EntityId:
    """Normalise any supported identifier representation into a UUID."""

    if isinstance(value, uuid.UUID):
        return value
    if isinstance(value, str):
        try:
            return uuid.UUID(value.strip())
        except ValueError as exc:
            raise ValidationFailed(f"Invalid identifier: {value!r}") from exc
    if isinstance(value, (bytes, bytearray)) and len(value) == 16:
        return uuid.UUID(bytes=bytes(value))
    if isinstance(value, int) and not isinstance(value, bool) and 0 <= value < 1 << 128:
        return uuid.UUID(int=value)
    raise ValidationFailed(f"Invalid identifier: {value!r}")


def parse_id(value: object, *, label: str = "id") -> EntityId:
    """Parse a client supplied identifier, naming the field in the error."""

    try:
        return canonical_id(value)
    except ValidationFailed as exc:
        raise ValidationFailed(f"Invalid {label}") from exc


def same_id(left: object, right: object) -> bool:
    return canonical_id(left) == canonical_id(right)
