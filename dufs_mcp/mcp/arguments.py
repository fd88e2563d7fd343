"""
Typed tool arguments.

Every tool's ``arguments`` object is validated into one of these models
before the tool body runs. Unknown keys are ignored; missing or mistyped
fields are reported as a ToolArgumentError naming the field.
"""

from typing import Any, Dict, List, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, ValidationError

from .errors import ToolArgumentError


ArgsT = TypeVar("ArgsT", bound="ToolArguments")


class ToolArguments(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class UploadArgs(ToolArguments):
    local_path: StrictStr = Field(min_length=1)
    remote_path: Optional[StrictStr] = None
    run_async: StrictBool = Field(default=False, alias="async")


class BatchFileEntry(ToolArguments):
    local_path: StrictStr = Field(min_length=1)
    remote_path: Optional[StrictStr] = None


class UploadBatchArgs(ToolArguments):
    files: List[BatchFileEntry] = Field(min_length=1)
    run_async: StrictBool = Field(default=True, alias="async")


class UploadStatusArgs(ToolArguments):
    job_id: StrictStr = Field(min_length=1)


class DownloadArgs(ToolArguments):
    remote_path: StrictStr = Field(min_length=1)
    local_path: Optional[StrictStr] = None


class PathArgs(ToolArguments):
    path: StrictStr = Field(min_length=1)


class ListArgs(ToolArguments):
    path: Optional[StrictStr] = None
    query: Optional[StrictStr] = None
    format: Optional[Literal["json", "simple"]] = None


class MoveArgs(ToolArguments):
    source: StrictStr = Field(min_length=1)
    destination: StrictStr = Field(min_length=1)


class NoArgs(ToolArguments):
    pass


_MISSING_ERROR_TYPES = {"missing", "string_too_short", "too_short"}


def _field_name(loc) -> str:
    named = [part for part in loc if isinstance(part, str)]
    return named[-1] if named else "arguments"


def _argument_error_message(exc: ValidationError) -> str:
    first = exc.errors()[0]
    loc = tuple(first.get("loc", ()))
    field = _field_name(loc)
    error_type = first.get("type", "")
    nested_in_files = len(loc) > 1 and loc[0] == "files"

    if field == "files" and error_type in _MISSING_ERROR_TYPES:
        return "files is required and must contain at least one entry"
    if nested_in_files and error_type in _MISSING_ERROR_TYPES:
        return f"{field} is required for each file"
    if error_type in _MISSING_ERROR_TYPES:
        return f"{field} is required"
    return f"invalid {field}: {first.get('msg', 'invalid value')}"


def parse_arguments(model: Type[ArgsT], arguments: Optional[Dict[str, Any]]) -> ArgsT:
    try:
        return model.model_validate(arguments or {})
    except ValidationError as exc:
        raise ToolArgumentError(_argument_error_message(exc)) from exc
