from typing import Any, Callable, Iterable, Mapping

from model.dao.enums import ColumnKind
from model.dto.builder import BuilderConfig


RowPredicate = Callable[[Mapping[str, Any], str | None], bool]


def default_search_keys(config: BuilderConfig) -> set[str]:
    """Columns searched unless the caller narrows them: every text column."""
    return {column.key for column in config.columns if column.kind == ColumnKind.TEXT}


def build_global_filter(
    config: BuilderConfig, enabled_keys: Iterable[str] | None = None
) -> RowPredicate:
    """Build a case-insensitive substring predicate over the enabled columns.

    The returned callable takes a row mapping and the filter text; an empty
    filter text matches every row.
    """
    keys = (
        default_search_keys(config) if enabled_keys is None else set(enabled_keys)
    )
    # Column order keeps the scan deterministic
    ordered_keys = [c.key for c in config.columns if c.key in keys]
    ordered_keys += sorted(keys.difference(ordered_keys))

    def matches(row: Mapping[str, Any], filter_text: str | None) -> bool:
        if not filter_text:
            return True

        query = str(filter_text).lower()
        for key in ordered_keys:
            value = row.get(key)
            if query in ("" if value is None else str(value)).lower():
                return True
        return False

    return matches
