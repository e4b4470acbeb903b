from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from model.dao.enums import ColumnKind


class CamelModel(BaseModel):
    """Accepts both the UI's camelCase and snake_case field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ColumnOption(BaseModel):
    value: str
    label: str


class BuilderColumn(CamelModel):
    key: str
    name: str
    kind: ColumnKind = ColumnKind.TEXT
    required: bool = False
    options: list[ColumnOption] | None = None
    meta: dict[str, Any] | None = None

    @field_validator("options", mode="before")
    @classmethod
    def expand_plain_options(cls, options):
        if options is None:
            return None
        return [
            {"value": option, "label": option} if isinstance(option, str) else option
            for option in options
        ]


class BuilderFeatures(CamelModel):
    search: bool = False
    sorting: bool = False
    pagination: bool = False
    create: bool = False
    edit: bool = False
    delete: bool = False
    multi_delete: bool = False
    columns_panel: bool = False


class BuilderConfig(CamelModel):
    table_name: str
    columns: list[BuilderColumn] = Field(default_factory=list)
    features: BuilderFeatures = Field(default_factory=BuilderFeatures)


def default_builder_config() -> BuilderConfig:
    """The builder's starting state."""
    return BuilderConfig(
        table_name="users",
        columns=[
            BuilderColumn(key="name", name="Name", kind=ColumnKind.TEXT),
            BuilderColumn(key="age", name="Age", kind=ColumnKind.NUMBER),
            BuilderColumn(key="gender", name="Gender", kind=ColumnKind.SELECT),
            BuilderColumn(key="email", name="Email", kind=ColumnKind.TEXT),
        ],
        features=BuilderFeatures(
            search=True,
            sorting=True,
            pagination=True,
            create=True,
            edit=True,
            delete=True,
            multi_delete=True,
        ),
    )


class ArtifactsDTO(BaseModel):
    ui: str
    types: str
    sql: str
    ddl: str


class PreviewQueryDTO(CamelModel):
    filter_text: str = ""
    search_keys: list[str] | None = None
    sort_by: str | None = None
    descending: bool = False
    page_index: int = Field(default=0, ge=0)
    page_size: int = Field(default=10, ge=1)


class PreviewRequestDTO(CamelModel):
    config: BuilderConfig
    rows: list[dict[str, Any]] = Field(default_factory=list)
    query: PreviewQueryDTO = Field(default_factory=PreviewQueryDTO)


class PreviewColumnDTO(BaseModel):
    id: str
    header: str
    kind: ColumnKind | None = None
    sortable: bool = False
    actions: list[str] = Field(default_factory=list)


class PreviewDTO(BaseModel):
    columns: list[PreviewColumnDTO]
    rows: list[dict[str, Any]]
    total: int
    page_index: int
    page_count: int
