"""Behaviour of every column kind.

The kind set is closed, so each kind maps to one `KindBehavior` entry in
`KIND_BEHAVIORS`: its TypeScript type, its zero value, its SQL column type
and the hooks used to validate a column definition and coerce editor input.
"""

import copy
from dataclasses import dataclass
from typing import Any, Callable

from core.exceptions import ValidationError
from model.dao.enums import ColumnKind
from model.dto.builder import BuilderColumn


_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off", ""}


def _coerce_text(value: Any) -> str:
    return "" if value is None else str(value)


def _coerce_number(value: Any) -> int | float:
    if isinstance(value, bool):
        raise ValidationError(f"Expected a number, got boolean `{value}`")
    if isinstance(value, (int, float)):
        return value
    if value is None or str(value).strip() == "":
        return 0

    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        raise ValidationError(f"Expected a number, got `{value}`")


def _coerce_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False

    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValidationError(f"Expected a boolean, got `{value}`")


def _coerce_tags(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [tag.strip() for tag in value.split(",") if tag.strip()]
    if isinstance(value, (list, tuple)):
        return [str(tag) for tag in value]
    raise ValidationError(f"Expected a list of tags, got `{value}`")


def _coerce_object(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    raise ValidationError(f"Expected an object, got `{value}`")


def _reject_options(column: BuilderColumn) -> None:
    if column.options:
        raise ValidationError(
            f"Column `{column.key}` of kind `{column.kind}` does not take options"
        )


def _validate_options(column: BuilderColumn) -> None:
    values = [option.value for option in column.options or []]
    duplicates = sorted({value for value in values if values.count(value) > 1})
    if duplicates:
        raise ValidationError(
            f"Column `{column.key}` has duplicate option values: {', '.join(duplicates)}"
        )


@dataclass(frozen=True)
class KindBehavior:
    ts_type: str
    sql_type: str
    default: Any
    coerce: Callable[[Any], Any]
    validate_column: Callable[[BuilderColumn], None]
    is_widget: bool = False


KIND_BEHAVIORS: dict[ColumnKind, KindBehavior] = {
    ColumnKind.TEXT: KindBehavior("string", "text", "", _coerce_text, _reject_options),
    ColumnKind.NUMBER: KindBehavior(
        "number", "numeric", 0, _coerce_number, _reject_options
    ),
    ColumnKind.BOOLEAN: KindBehavior(
        "boolean", "boolean", False, _coerce_boolean, _reject_options
    ),
    ColumnKind.DATE: KindBehavior(
        "string", "timestamptz", "", _coerce_text, _reject_options
    ),
    ColumnKind.SELECT: KindBehavior(
        "string", "text", "", _coerce_text, _validate_options, is_widget=True
    ),
    ColumnKind.TAGS: KindBehavior(
        "string[]", "jsonb", [], _coerce_tags, _validate_options, is_widget=True
    ),
    ColumnKind.OBJECT: KindBehavior(
        "Record<string, unknown>", "jsonb", {}, _coerce_object, _reject_options,
        is_widget=True,
    ),
}


def behavior_for(kind: ColumnKind | str) -> KindBehavior:
    try:
        return KIND_BEHAVIORS[ColumnKind(kind)]
    except ValueError:
        raise ValidationError(f"Unrecognized column kind `{kind}`")


def map_type(kind: ColumnKind | str) -> str:
    """TypeScript type of a column of `kind`."""
    return behavior_for(kind).ts_type


def sql_type(kind: ColumnKind | str) -> str:
    return behavior_for(kind).sql_type


def default_value(kind: ColumnKind | str) -> Any:
    # Fresh copy per call
    return copy.deepcopy(behavior_for(kind).default)


def coerce_value(kind: ColumnKind | str, value: Any) -> Any:
    return behavior_for(kind).coerce(value)


def validate_column(column: BuilderColumn) -> None:
    behavior_for(column.kind).validate_column(column)
