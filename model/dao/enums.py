from enum import StrEnum


class ColumnKind(StrEnum):
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    SELECT = "select"
    TAGS = "tags"
    OBJECT = "object"


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"
