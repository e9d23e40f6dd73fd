"""Populate EnvConfig records from environment variables."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any, TypeVar

from envbind.coercion.parsers import coerce
from envbind.config.record import EnvConfig
from envbind.models.errors import FieldCoercionError, InvalidTarget, UnsupportedFieldType
from envbind.models.field import FieldSpec

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=EnvConfig)


def _resolve(spec: FieldSpec, environ: Mapping[str, str], prefix: str) -> tuple[str, str]:
    """Return (raw value, source). An empty variable counts as unset."""
    value = environ.get(f"{prefix}{spec.env_key}", "")
    if value == "":
        return spec.default_literal, "default"
    return value, "env"


def _convert(spec: FieldSpec, raw: str) -> Any:
    if spec.kind is None:
        raise UnsupportedFieldType(spec.name, spec.type_name)
    try:
        return coerce(spec.kind, raw)
    except ValueError as exc:
        raise FieldCoercionError(spec.name, raw, str(exc)) from exc


def bind(
    record: RecordT,
    *,
    environ: Mapping[str, str] | None = None,
    prefix: str = "",
    atomic: bool = False,
) -> RecordT:
    """Assign every bindable field of ``record`` from the environment.

    Each field's variable (``prefix`` + its env key) is looked up in
    ``environ`` (``os.environ`` when omitted); an unset or empty variable
    falls back to the field's default literal. The string is parsed into the
    field's kind and assigned in place.

    The first failing field aborts the pass with UnsupportedFieldType or
    FieldCoercionError. Fields assigned before it keep their new values
    unless ``atomic`` is set, in which case nothing is assigned until every
    field has parsed.

    Returns ``record``.
    """
    if not isinstance(record, EnvConfig):
        raise InvalidTarget(record)
    if environ is None:
        environ = os.environ

    record_type = type(record).__name__
    staged: dict[str, Any] = {}
    bound = 0

    for spec in type(record).__env_fields__:
        if not spec.bindable:
            logger.debug("%s.%s has no env key, skipping", record_type, spec.name)
            continue

        raw, source = _resolve(spec, environ, prefix)
        try:
            value = _convert(spec, raw)
        except (UnsupportedFieldType, FieldCoercionError):
            if atomic and staged:
                logger.warning(
                    "Discarding %d staged field(s) of %s after %s failed",
                    len(staged), record_type, spec.name,
                )
            raise

        logger.debug("%s.%s <- %s%s (%s)", record_type, spec.name, prefix, spec.env_key, source)
        if atomic:
            staged[spec.name] = value
        else:
            setattr(record, spec.name, value)
        bound += 1

    if atomic:
        for name, value in staged.items():
            setattr(record, name, value)

    logger.info("Bound %d field(s) of %s from environment", bound, record_type)
    return record


load_from_env = bind
