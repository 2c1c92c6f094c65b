"""Front-matter schema and validation.

The schema is expressed as strict pydantic models so a single validation pass
collects every violation, each with a JSON-pointer style path into the
metadata block (``/parameters/0/type``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

MISSING_FRONT_MATTER = "Missing front matter metadata"

ParameterType = Literal["string", "text", "enum", "number", "boolean", "date", "array"]
ClipboardType = Literal["text", "url", "file"]

DEFAULT_ARRAY_DELIMITER = ";"


@dataclass(frozen=True)
class ValidationIssue:
    """One schema violation found in a document's metadata."""

    message: str
    path: str | None = None


class _SchemaModel(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)


class ParameterSpec(_SchemaModel):
    """A typed input the template expects at render time."""

    name: str = Field(min_length=1)
    type: ParameterType
    label: str | None = None
    required: bool = False
    default: Any = None
    options: list[str] | None = None
    regex: str | None = None
    multiline: bool | None = None
    delimiter: str | None = Field(default=None, min_length=1)

    @property
    def display_name(self) -> str:
        return self.label or self.name

    @property
    def array_delimiter(self) -> str:
        return self.delimiter or DEFAULT_ARRAY_DELIMITER


class ModelConfig(_SchemaModel):
    """Completion model hints carried alongside a prompt."""

    provider: Literal["openai"]
    name: str | None = None
    temperature: float | None = Field(default=None, ge=0, le=2)
    max_tokens: int | None = Field(default=None, gt=0)


class FrontMatter(_SchemaModel):
    """Declared metadata at the top of a prompt document."""

    schema_version: Literal[1]
    title: str = Field(min_length=1)
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    files_to_paste: list[str] = Field(default_factory=list)
    parameters: list[ParameterSpec] = Field(default_factory=list)
    model: ModelConfig | None = None
    comments: list[str] = Field(default_factory=list)
    preferred_clipboard_types: list[ClipboardType] = Field(default_factory=list)
    requires_file: bool = False

    @model_validator(mode="after")
    def _unique_parameter_names(self) -> FrontMatter:
        seen: set[str] = set()
        duplicates: list[str] = []
        for parameter in self.parameters:
            if parameter.name in seen and parameter.name not in duplicates:
                duplicates.append(parameter.name)
            seen.add(parameter.name)
        if duplicates:
            raise ValueError(f"duplicate parameter name(s): {', '.join(duplicates)}")
        return self


@dataclass(frozen=True)
class Valid:
    front_matter: FrontMatter


@dataclass(frozen=True)
class Invalid:
    issues: list[ValidationIssue] = field(default_factory=list)


SchemaResult = Union[Valid, Invalid]


def _issue_path(loc: tuple) -> str | None:
    if not loc:
        return None
    return "/" + "/".join(str(part) for part in loc)


def validate_front_matter(data: Any) -> SchemaResult:
    """Validate a parsed metadata block, reporting every violation at once."""
    try:
        return Valid(FrontMatter.model_validate(data))
    except ValidationError as e:
        issues = []
        for error in e.errors():
            path = _issue_path(tuple(error.get("loc", ())))
            # Model-level checks report against the parameter list
            if path is None and "parameter name" in error.get("msg", ""):
                path = "/parameters"
            issues.append(ValidationIssue(message=error.get("msg", "Invalid value"), path=path))
        return Invalid(issues or [ValidationIssue("Unknown schema validation error")])
