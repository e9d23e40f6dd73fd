"""Base model for configuration records populated from environment variables."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import timedelta
from typing import Any, ClassVar, TypeVar, get_origin

from pydantic import BaseModel, Field

from envbind.models.errors import FieldRegistrationError
from envbind.models.field import INT_BITS, FieldKind, FieldSpec

_ANNOTATION_KINDS: dict[type, FieldKind] = {
    str: FieldKind.STRING,
    bool: FieldKind.BOOL,
    int: FieldKind.INT,
    float: FieldKind.FLOAT64,
    timedelta: FieldKind.DURATION,
}

# Explicit kinds allowed for each supported annotation.
_COMPATIBLE_KINDS: dict[type, frozenset[FieldKind]] = {
    str: frozenset({FieldKind.STRING}),
    bool: frozenset({FieldKind.BOOL}),
    int: frozenset(INT_BITS),
    float: frozenset({FieldKind.FLOAT32, FieldKind.FLOAT64}),
    timedelta: frozenset({FieldKind.DURATION}),
}

_ZERO_VALUES: dict[FieldKind, Any] = {
    FieldKind.STRING: "",
    FieldKind.BOOL: False,
    FieldKind.FLOAT32: 0.0,
    FieldKind.FLOAT64: 0.0,
    FieldKind.DURATION: timedelta(0),
    **{kind: 0 for kind in INT_BITS},
}


class _ZeroValue:
    """default_factory whose value is filled in once the field's kind is known."""

    def __init__(self) -> None:
        self.value: Any = None
        self.resolved = False
        self.kind: FieldKind | None = None

    def __call__(self) -> Any:
        return self.value

    def resolve(self, field_name: str, kind: FieldKind | None) -> None:
        if self.resolved and self.kind is not kind:
            raise FieldRegistrationError(
                field_name,
                "env_field already registered with a different type; declare a separate env_field",
            )
        self.value = _ZERO_VALUES.get(kind) if kind else None
        self.kind = kind
        self.resolved = True


_NO_INITIAL = object()

ConfigT = TypeVar("ConfigT", bound="EnvConfig")


def env_field(
    env: str,
    default: str = "",
    *,
    kind: FieldKind | str | None = None,
    initial: Any = _NO_INITIAL,
    description: str | None = None,
) -> Any:
    """Declare a field bound from the environment variable ``env``.

    ``default`` is the literal used when the variable is unset or empty; it is
    parsed like any environment value. ``kind`` narrows the parsed type
    (e.g. ``FieldKind.INT16`` or ``FieldKind.FLOAT32``) and otherwise follows
    the annotation. ``initial`` is the attribute value before binding and
    defaults to the kind's zero value.
    """
    extra: dict[str, Any] = {"env": env, "env_default": default}
    if kind is not None:
        extra["env_kind"] = FieldKind(kind).value
    if initial is _NO_INITIAL:
        return Field(default_factory=_ZeroValue(), description=description, json_schema_extra=extra)
    return Field(default=initial, description=description, json_schema_extra=extra)


def _type_name(annotation: Any) -> str:
    if isinstance(annotation, type) and get_origin(annotation) is None:
        return annotation.__name__
    return str(annotation)


def _resolve_kind(field_name: str, annotation: Any, explicit: str | None) -> FieldKind | None:
    inferred = _ANNOTATION_KINDS.get(annotation) if isinstance(annotation, type) else None
    if explicit is None:
        return inferred

    kind = FieldKind(explicit)
    if inferred is None or kind not in _COMPATIBLE_KINDS[annotation]:
        raise FieldRegistrationError(
            field_name,
            f"kind {kind.value} does not match annotation {_type_name(annotation)}",
        )
    return kind


class EnvConfig(BaseModel):
    """Configuration record whose ``env_field`` fields are filled by ``bind``.

    Subclasses register their bindable fields when the class is created;
    the resulting FieldSpec tuple lives in ``__env_fields__`` in declaration
    order. A bindable field that can never be assigned (frozen model or
    frozen field) is rejected at that point.
    """

    __env_fields__: ClassVar[tuple[FieldSpec, ...]] = ()

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        cls.__env_fields__ = tuple(_collect_specs(cls))

    @classmethod
    def from_env(
        cls: type[ConfigT],
        environ: Mapping[str, str] | None = None,
        prefix: str = "",
        **init: Any,
    ) -> ConfigT:
        """Create an instance from ``init`` and bind it atomically."""
        from envbind.config.binder import bind

        return bind(cls(**init), environ=environ, prefix=prefix, atomic=True)


def _collect_specs(cls: type[EnvConfig]) -> list[FieldSpec]:
    specs: list[FieldSpec] = []
    model_frozen = bool(cls.model_config.get("frozen"))

    for name, info in cls.model_fields.items():
        extra = info.json_schema_extra
        if not isinstance(extra, dict) or "env" not in extra:
            continue

        env_key = str(extra["env"])
        kind = _resolve_kind(name, info.annotation, extra.get("env_kind"))
        if env_key and (model_frozen or info.frozen):
            raise FieldRegistrationError(name, "frozen fields cannot be bound from the environment")

        if isinstance(info.default_factory, _ZeroValue):
            info.default_factory.resolve(name, kind)

        specs.append(
            FieldSpec(
                name=name,
                env_key=env_key,
                default_literal=str(extra.get("env_default", "")),
                kind=kind,
                type_name=_type_name(info.annotation),
            )
        )
    return specs
