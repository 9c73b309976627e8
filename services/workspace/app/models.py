"""Pydantic models for caller-facing workspace requests."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, ValidationError
from pydantic.alias_generators import to_camel

from inkwell_schemas import Theme

from .errors import InvalidInputError

_RequestT = TypeVar("_RequestT", bound=BaseModel)


class WorkspaceRequest(BaseModel):
    """Accepts camelCase keys from JSON bodies as well as snake_case names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BookCreateRequest(WorkspaceRequest):
    title: str = Field(..., min_length=1)
    one_liner: str = ""
    genre: str = "Uncategorized"
    readers: str = "General"
    target_words: PositiveInt = 120000
    pace: str = "normal"
    style_id: Optional[str] = Field(
        None, description="Preset to snapshot; the default preset is used when omitted"
    )


class BookUpdateRequest(WorkspaceRequest):
    title: Optional[str] = Field(None, min_length=1)
    one_liner: Optional[str] = None
    genre: Optional[str] = None
    readers: Optional[str] = None
    target_words: Optional[PositiveInt] = None
    pace: Optional[str] = None
    final_goal: Optional[str] = None
    style_id: Optional[str] = Field(None, description="Re-snapshot this preset onto the book")


class LoreExpansionRequest(WorkspaceRequest):
    """Seed values for lore expansion; supplied fields win over generated ones."""

    world: Optional[str] = None
    factions: Optional[List[str]] = None
    protagonist: Optional[str] = None
    side_characters: Optional[List[str]] = None


class ChapterUpdateRequest(WorkspaceRequest):
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)


class StyleCreateRequest(WorkspaceRequest):
    name: str = Field(..., min_length=1)
    system_prompt: str = ""
    vocabulary: List[str] = Field(default_factory=list)
    prohibited_words: List[str] = Field(default_factory=list)
    is_default: bool = False


class StyleUpdateRequest(WorkspaceRequest):
    name: Optional[str] = Field(None, min_length=1)
    system_prompt: Optional[str] = None
    vocabulary: Optional[List[str]] = None
    prohibited_words: Optional[List[str]] = None
    is_default: Optional[bool] = None


class SettingsUpdateRequest(WorkspaceRequest):
    provider: Optional[str] = Field(
        None, min_length=1, description="Provider identifier: openai, anthropic, google, nvidia, mock"
    )
    model: Optional[str] = Field(None, min_length=1)
    api_key_masked: Optional[str] = None
    theme: Optional[Theme] = None


class ConnectionTestRequest(WorkspaceRequest):
    provider: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    api_key: str = ""
    timeout_seconds: Optional[float] = Field(None, gt=0)


def parse_request(model: Type[_RequestT], payload: _RequestT | Mapping[str, Any]) -> _RequestT:
    """Validate ``payload`` into ``model``, reporting failures as invalid input."""

    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise InvalidInputError(f"Invalid {model.__name__}: {exc.errors()}") from exc


def provided_fields(request: BaseModel) -> dict[str, Any]:
    """Fields the caller actually set, excluding explicit nulls."""

    return {
        key: value
        for key, value in request.model_dump(exclude_unset=True).items()
        if value is not None
    }
