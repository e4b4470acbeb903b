from datetime import UTC, datetime
import re
from typing import TypeVar

import pydantic

from core.exceptions import ParseError, ValidationError


M = TypeVar("M", bound=pydantic.BaseModel)


_SEGMENT_SPLIT = re.compile(r"[\W_]+")


def utc_now() -> datetime:
    return datetime.now(UTC)


def pascal_case(name: str) -> str:
    """Join the `_`/`-`/non-word separated segments of `name`, each capitalized.

    Only the first letter of a segment is touched: `user_profiles` becomes
    `UserProfiles` and `myHTTPTable` becomes `MyHTTPTable`.
    """
    segments = [segment for segment in _SEGMENT_SPLIT.split(name) if segment]
    return "".join(segment[0].upper() + segment[1:] for segment in segments)


def format_validation_errors(exc: pydantic.ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )


def parse_json_model(model: type[M], raw: str | bytes) -> M:
    """Validate JSON text into `model`.

    Text that is not JSON at all raises `ParseError`; JSON of the wrong shape
    raises `ValidationError`.
    """
    try:
        return model.model_validate_json(raw)
    except pydantic.ValidationError as exc:
        errors = exc.errors()
        if any(error["type"] == "json_invalid" for error in errors):
            raise ParseError(f"Malformed JSON: {errors[0]['msg']}")

        raise ValidationError(format_validation_errors(exc))
