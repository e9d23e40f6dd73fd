"""Field descriptors for environment-backed configuration records."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class FieldKind(str, Enum):
    STRING = "string"
    INT = "int"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    BOOL = "bool"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    DURATION = "duration"


# Signed range per integer kind.
INT_BITS: dict[FieldKind, int] = {
    FieldKind.INT: 64,
    FieldKind.INT8: 8,
    FieldKind.INT16: 16,
    FieldKind.INT32: 32,
    FieldKind.INT64: 64,
}


class FieldSpec(BaseModel):
    """Registration record for one bindable field.

    Built once when the owning EnvConfig subclass is created and never
    mutated afterwards. ``kind`` is None when the annotation has no parser;
    ``type_name`` keeps the annotation's name for error reporting.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    env_key: str
    default_literal: str = ""
    kind: FieldKind | None = None
    type_name: str = ""

    @property
    def bindable(self) -> bool:
        return bool(self.env_key)
