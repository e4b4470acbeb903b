"""Text artifacts generated from a `BuilderConfig`.

Every generator is a pure function of the config: the same config always
yields byte-identical output.
"""

import re

from core.exceptions import ValidationError
from core.utils import pascal_case
from model.dto.builder import BuilderConfig
from service.kinds import map_type, sql_type


IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
ROW_TYPE_SUFFIX = "Row"
INDENT = "  "

SQL_PREAMBLE = (
    "-- Requires normalized schema (tables, table_columns, table_rows, table_cells)\n"
    "-- If not installed, create it first (DB_CREATE_SCHEMA=true on the API).\n"
)


def row_type_name(table_name: str) -> str:
    type_name = pascal_case(table_name)
    if not type_name or not IDENTIFIER.match(type_name):
        raise ValidationError(f"Cannot derive a type name from table `{table_name}`")
    return type_name + ROW_TYPE_SUFFIX


def ensure_generatable(config: BuilderConfig) -> None:
    """Raise instead of emitting degenerate artifacts."""
    if not config.table_name or not config.table_name.strip():
        raise ValidationError("Table name must not be empty")
    if not config.columns:
        raise ValidationError(f"Table `{config.table_name}` has no columns")

    for column in config.columns:
        if not IDENTIFIER.match(column.key):
            raise ValidationError(f"Column key `{column.key}` is not a valid identifier")


def ts_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "\\'").replace("\n", "\\n")
    return f"'{escaped}'"


def sql_string(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def sql_identifier(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def generate_types(config: BuilderConfig) -> str:
    ensure_generatable(config)

    fields = [f"{INDENT}{c.key}: {map_type(c.kind)};" for c in config.columns]
    lines = [f"export interface {row_type_name(config.table_name)} {{", *fields, "}"]
    return "\n".join(lines)


def generate_sql_normalized(config: BuilderConfig) -> str:
    """Insert the table and its column definitions into the normalized schema.

    The column `type` written is the kind name as-is, not a SQL type.
    """
    ensure_generatable(config)

    selects = [
        "select new_table.id, {key}, {name}, {kind}, {position}::int, null::int, "
        "'{{}}'::jsonb from new_table".format(
            key=sql_string(column.key),
            name=sql_string(column.name),
            kind=sql_string(column.kind.value),
            position=position,
        )
        for position, column in enumerate(config.columns)
    ]

    return (
        SQL_PREAMBLE
        + "with new_table as (\n"
        + f"{INDENT}insert into public.tables(name) values ({sql_string(config.table_name)})\n"
        + f"{INDENT}returning id\n"
        + ")\n"
        + "insert into public.table_columns (table_id, key, name, type, position, width, meta)\n"
        + "\nunion all\n".join(selects)
        + ";"
    )


def generate_sql_ddl(config: BuilderConfig) -> str:
    """A standalone `create table` with one typed SQL column per builder column."""
    ensure_generatable(config)

    definitions = [f"{INDENT}id uuid primary key default gen_random_uuid()"]
    for column in config.columns:
        definition = f"{INDENT}{sql_identifier(column.key)} {sql_type(column.kind)}"
        if column.required:
            definition += " not null"
        definitions.append(definition)

    return (
        f"create table if not exists public.{sql_identifier(config.table_name)} (\n"
        + ",\n".join(definitions)
        + "\n);"
    )


def generate_ui(config: BuilderConfig) -> str:
    """A React data-grid component wired for the enabled features only."""
    ensure_generatable(config)

    features = config.features
    row_type = row_type_name(config.table_name)
    has_actions = features.edit or features.delete

    row_models = ["getCoreRowModel"]
    if features.sorting:
        row_models.append("getSortedRowModel")
    if features.search:
        row_models.append("getFilteredRowModel")
    if features.pagination:
        row_models.append("getPaginationRowModel")

    lines: list[str] = []
    if features.search:
        lines.append("import { useState } from 'react'")
    lines += [
        "import { ColumnDef, flexRender, useReactTable, "
        + ", ".join(row_models)
        + " } from '@tanstack/react-table'",
        "import { Table, TableBody, TableCell, TableHead, TableHeader, TableRow } "
        "from '@ui8kit/form'",
        "",
        f"export type {row_type} = {{ "
        + "; ".join(f"{c.key}: {map_type(c.kind)}" for c in config.columns)
        + " }",
        "",
    ]

    # Props
    lines.append("export type GeneratedTableProps = {")
    lines.append(f"{INDENT}data: {row_type}[]")
    props = ["data"]
    if features.create:
        lines.append(f"{INDENT}onCreate?: () => void")
        props.append("onCreate")
    if features.edit:
        lines.append(f"{INDENT}onEdit?: (row: {row_type}) => void")
        props.append("onEdit")
    if features.delete:
        lines.append(f"{INDENT}onDelete?: (row: {row_type}) => void")
        props.append("onDelete")
    if features.multi_delete:
        lines.append(f"{INDENT}onDeleteSelected?: (rows: {row_type}[]) => void")
        props.append("onDeleteSelected")
    lines += ["}", ""]

    lines.append(
        f"export function GeneratedTable({{ {', '.join(props)} }}: GeneratedTableProps) {{"
    )
    body = INDENT
    if features.search:
        lines.append(f"{body}const [globalFilter, setGlobalFilter] = useState('')")

    # Column definitions
    lines.append(f"{body}const columns: ColumnDef<{row_type}>[] = [")
    if features.multi_delete:
        lines += _selection_column(body * 2)
    for column in config.columns:
        lines.append(
            f"{body * 2}{{ accessorKey: {ts_string(column.key)}, "
            f"header: {ts_string(column.name)} }},"
        )
    if has_actions:
        lines += _actions_column(body * 2, features.edit, features.delete)
    lines += [f"{body}]", ""]

    # Table instance
    lines += [
        f"{body}const table = useReactTable({{",
        f"{body * 2}data,",
        f"{body * 2}columns,",
    ]
    lines += [f"{body * 2}{model}: {model}()," for model in row_models]
    if features.search:
        lines += [
            f"{body * 2}state: {{ globalFilter }},",
            f"{body * 2}onGlobalFilterChange: setGlobalFilter,",
        ]
    if features.multi_delete:
        lines.append(f"{body * 2}enableRowSelection: true,")
    lines += [f"{body}}})", ""]

    lines += [f"{body}return (", f"{body * 2}<div className=\"space-y-2\">"]
    lines += _toolbar(body * 3, features)
    if features.columns_panel:
        lines += _columns_panel(body * 3)
    lines += _grid(body * 3, features.sorting)
    if features.pagination:
        lines += _pagination_controls(body * 3)
    lines += [f"{body * 2}</div>", f"{body})", "}"]

    return "\n".join(lines)


def _selection_column(indent: str) -> list[str]:
    return [
        f"{indent}{{",
        f"{indent}{INDENT}id: 'select',",
        f"{indent}{INDENT}header: ({{ table }}) => (",
        f"{indent}{INDENT * 2}<input type=\"checkbox\" checked={{table.getIsAllRowsSelected()}} "
        "onChange={table.getToggleAllRowsSelectedHandler()} />",
        f"{indent}{INDENT}),",
        f"{indent}{INDENT}cell: ({{ row }}) => (",
        f"{indent}{INDENT * 2}<input type=\"checkbox\" checked={{row.getIsSelected()}} "
        "onChange={row.getToggleSelectedHandler()} />",
        f"{indent}{INDENT}),",
        f"{indent}}},",
    ]


def _actions_column(indent: str, edit: bool, delete: bool) -> list[str]:
    buttons = []
    if edit:
        buttons.append(
            '<button type="button" onClick={() => onEdit?.(row.original)}>Edit</button>'
        )
    if delete:
        buttons.append(
            '<button type="button" onClick={() => onDelete?.(row.original)}>Delete</button>'
        )

    return [
        f"{indent}{{",
        f"{indent}{INDENT}id: 'actions',",
        f"{indent}{INDENT}header: '',",
        f"{indent}{INDENT}cell: ({{ row }}) => (",
        f"{indent}{INDENT * 2}<div className=\"flex gap-2\">",
        *[f"{indent}{INDENT * 3}{button}" for button in buttons],
        f"{indent}{INDENT * 2}</div>",
        f"{indent}{INDENT}),",
        f"{indent}}},",
    ]


def _toolbar(indent: str, features) -> list[str]:
    controls = []
    if features.search:
        controls.append(
            "<input value={globalFilter} onChange={(e) => setGlobalFilter(e.target.value)} "
            'placeholder="Search..." />'
        )
    if features.create:
        controls.append('<button type="button" onClick={() => onCreate?.()}>Add row</button>')
    if features.multi_delete:
        controls.append(
            '<button type="button" onClick={() => onDeleteSelected?.('
            "table.getSelectedRowModel().rows.map((r) => r.original))}>Delete selected</button>"
        )
    if not controls:
        return []

    return [
        f"{indent}<div className=\"flex gap-2\">",
        *[f"{indent}{INDENT}{control}" for control in controls],
        f"{indent}</div>",
    ]


def _columns_panel(indent: str) -> list[str]:
    return [
        f"{indent}<div className=\"flex gap-2\">",
        f"{indent}{INDENT}{{table.getAllLeafColumns().map((column) => (",
        f"{indent}{INDENT * 2}<label key={{column.id}}>",
        f"{indent}{INDENT * 3}<input type=\"checkbox\" checked={{column.getIsVisible()}} "
        "onChange={column.getToggleVisibilityHandler()} /> {column.id}",
        f"{indent}{INDENT * 2}</label>",
        f"{indent}{INDENT}))}}",
        f"{indent}</div>",
    ]


def _grid(indent: str, sorting: bool) -> list[str]:
    head_open = (
        "<TableHead key={h.id} onClick={h.column.getToggleSortingHandler()}>"
        if sorting
        else "<TableHead key={h.id}>"
    )
    i = INDENT
    return [
        f"{indent}<div className=\"rounded-md border\">",
        f"{indent}{i}<Table>",
        f"{indent}{i * 2}<TableHeader>",
        f"{indent}{i * 3}{{table.getHeaderGroups().map((hg) => (",
        f"{indent}{i * 4}<TableRow key={{hg.id}}>",
        f"{indent}{i * 5}{{hg.headers.map((h) => (",
        f"{indent}{i * 6}{head_open}",
        f"{indent}{i * 7}{{h.isPlaceholder ? null : flexRender(h.column.columnDef.header, h.getContext())}}",
        f"{indent}{i * 6}</TableHead>",
        f"{indent}{i * 5}))}}",
        f"{indent}{i * 4}</TableRow>",
        f"{indent}{i * 3}))}}",
        f"{indent}{i * 2}</TableHeader>",
        f"{indent}{i * 2}<TableBody>",
        f"{indent}{i * 3}{{table.getRowModel().rows.map((row) => (",
        f"{indent}{i * 4}<TableRow key={{row.id}}>",
        f"{indent}{i * 5}{{row.getVisibleCells().map((cell) => (",
        f"{indent}{i * 6}<TableCell key={{cell.id}}>",
        f"{indent}{i * 7}{{flexRender(cell.column.columnDef.cell, cell.getContext()) ?? String(cell.getValue() ?? '')}}",
        f"{indent}{i * 6}</TableCell>",
        f"{indent}{i * 5}))}}",
        f"{indent}{i * 4}</TableRow>",
        f"{indent}{i * 3}))}}",
        f"{indent}{i * 2}</TableBody>",
        f"{indent}{i}</Table>",
        f"{indent}</div>",
    ]


def _pagination_controls(indent: str) -> list[str]:
    return [
        f"{indent}<div className=\"flex items-center gap-2\">",
        f"{indent}{INDENT}<button type=\"button\" onClick={{() => table.previousPage()}} "
        "disabled={!table.getCanPreviousPage()}>Previous</button>",
        f"{indent}{INDENT}<span>Page {{table.getState().pagination.pageIndex + 1}} of "
        "{table.getPageCount()}</span>",
        f"{indent}{INDENT}<button type=\"button\" onClick={{() => table.nextPage()}} "
        "disabled={!table.getCanNextPage()}>Next</button>",
        f"{indent}</div>",
    ]
