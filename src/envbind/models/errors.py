"""Exceptions raised while registering or binding environment-backed fields."""

from __future__ import annotations


class EnvBindError(Exception):
    """Base class for every envbind failure."""


class InvalidTarget(EnvBindError, TypeError):
    """bind() was given something other than an EnvConfig instance."""

    def __init__(self, target: object) -> None:
        self.target_type = type(target).__name__
        super().__init__(
            f"config must be an EnvConfig instance, got {self.target_type}"
        )


class UnsupportedFieldType(EnvBindError):
    """A bindable field's declared type has no parser."""

    def __init__(self, field_name: str, kind: str) -> None:
        self.field_name = field_name
        self.kind = kind
        super().__init__(f"error setting field {field_name}: unsupported field type: {kind}")


class FieldCoercionError(EnvBindError, ValueError):
    """The resolved string could not be parsed into the field's type."""

    def __init__(self, field_name: str, raw_value: str, reason: str) -> None:
        self.field_name = field_name
        self.raw_value = raw_value
        self.reason = reason
        super().__init__(f"error setting field {field_name}: {reason}: {raw_value!r}")


class FieldRegistrationError(EnvBindError, TypeError):
    """A field was declared bindable but can never be bound."""

    def __init__(self, field_name: str, reason: str) -> None:
        self.field_name = field_name
        self.reason = reason
        super().__init__(f"cannot register field {field_name}: {reason}")
