"""Bind configuration sections onto settings objects."""

from __future__ import annotations

import dataclasses
from typing import Any, TypeVar

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .configuration import KEY_DELIMITER, Configuration
from .exceptions import InvalidConfigurationError, ensure_argument
from .validation import ValidatableConfig, ValidationError

T = TypeVar("T")
V = TypeVar("V", bound=ValidatableConfig)


def _field_key(name: str) -> str:
    return name.replace("_", "").casefold()


def _collapse(value: Any) -> Any:
    """Turn ``{"0": a, "1": b}`` into ``[a, b]``; recurse into nested children."""
    if not isinstance(value, dict):
        return value
    children = {k: _collapse(v) for k, v in value.items()}
    if children and all(k.isdigit() for k in children):
        return [children[k] for k in sorted(children, key=int)]
    return children


def _section_data(section: dict[str, str], cls: type[Any]) -> dict[str, Any]:
    lookup = {_field_key(f.name): f.name for f in dataclasses.fields(cls)}
    data: dict[str, Any] = {}
    for key, value in section.items():
        parts = key.split(KEY_DELIMITER)
        field_name = lookup.get(_field_key(parts[0]))
        if field_name is None:
            continue
        if len(parts) == 1:
            data[field_name] = value
            continue
        node = data.setdefault(field_name, {})
        if not isinstance(node, dict):
            continue
        for part in parts[1:-1]:
            node = node.setdefault(part, {})
        node[parts[-1]] = value
    return {k: _collapse(v) for k, v in data.items()}


def bind_options(configuration: Configuration, section: str, cls: type[T]) -> T:
    """Build a ``cls`` instance from the children of ``section``.

    Keys match dataclass fields ignoring case and underscores, so
    ``Swagger:MajorVersion`` binds to ``major_version``. Indexed children
    (``Keys:0``, ``Keys:1``) become lists. Values are coerced with pydantic.
    Declared rules are not evaluated; see get_validated_options.

    Raises:
        ArgumentMissingError: if configuration or cls is None
        InvalidConfigurationError: if a value cannot be coerced
    """
    ensure_argument(configuration, "configuration")
    ensure_argument(cls, "cls")

    data = _section_data(configuration.get_section(section), cls)
    try:
        return TypeAdapter(cls).validate_python(data)
    except PydanticValidationError as e:
        errors = [
            ValidationError(
                ".".join(str(p) for p in err["loc"]) or section,
                f"{section}:{'.'.join(str(p) for p in err['loc'])}: {err['msg']}",
                code="BINDING",
            )
            for err in e.errors()
        ]
        raise InvalidConfigurationError(
            f"{cls.__name__} binding failed: " + "; ".join(err.message for err in errors),
            errors=errors,
            cause=e,
        ) from e


def get_validated_options(configuration: Configuration, section: str, cls: type[V]) -> V:
    """Bind ``section`` onto ``cls`` and run its declared validation."""
    options = bind_options(configuration, section, cls)
    options.validate()
    return options
