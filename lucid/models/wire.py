"""Wire format models.

A wire message is ``{id, role, parts}`` where every part is a tagged object.
Tool parts are tagged either ``tool-<name>`` or ``dynamic-tool``. Parts with a
type we do not know are kept as ``UnknownPart`` so they survive parsing and
are dropped later by the adapter.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from lucid.models.ir import ConversationRole


class WireModel(BaseModel):
    """Base for wire models: camelCase on the wire, snake_case in Python."""

    class Config:
        populate_by_name = True

    def dump(self) -> dict[str, Any]:
        """Serialize to the wire JSON shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TextPart(WireModel):
    type: Literal["text"] = "text"
    text: str
    state: str | None = Field(default=None, description="'streaming' or 'done'")


class ReasoningPart(WireModel):
    type: Literal["reasoning"] = "reasoning"
    text: str
    state: str | None = Field(default=None, description="'streaming' or 'done'")


class FilePart(WireModel):
    type: Literal["file"] = "file"
    media_type: str = Field(alias="mediaType")
    filename: str | None = None
    url: str


class SourceUrlPart(WireModel):
    type: Literal["source-url"] = "source-url"
    source_id: str = Field(alias="sourceId")
    url: str
    title: str | None = None


class SourceDocumentPart(WireModel):
    type: Literal["source-document"] = "source-document"
    source_id: str = Field(alias="sourceId")
    media_type: str = Field(alias="mediaType")
    title: str
    filename: str | None = None


class WireApproval(WireModel):
    id: str
    approved: bool | None = None
    reason: str | None = None


def is_tool_part_type(part_type: str) -> bool:
    """Check if a part type tags a tool call (``tool-<name>`` or ``dynamic-tool``)."""
    return part_type.startswith("tool-") or part_type == "dynamic-tool"


class ToolPart(WireModel):
    """Tool call part.

    ``state`` is one of input-streaming, input-available, approval-requested,
    approval-responded, output-available, output-error or output-denied. Any
    other value is accepted and read as a pending call.
    """

    type: str
    tool_name: str | None = Field(default=None, alias="toolName")
    tool_call_id: str = Field(alias="toolCallId")
    state: str | None = None
    input: Any = None
    output: Any = None
    error_text: str | None = Field(default=None, alias="errorText")
    approval: WireApproval | None = None

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        """Only tool-tagged parts are tool parts."""
        if not is_tool_part_type(v):
            raise ValueError(f"Not a tool part type: {v}")
        return v


class UnknownPart(WireModel):
    """Part with a type this package does not convert."""

    type: str

    class Config:
        extra = "allow"


WirePart = TextPart | ReasoningPart | FilePart | SourceUrlPart | SourceDocumentPart | ToolPart | UnknownPart

_PART_MODELS: dict[str, type[WireModel]] = {
    "text": TextPart,
    "reasoning": ReasoningPart,
    "file": FilePart,
    "source-url": SourceUrlPart,
    "source-document": SourceDocumentPart,
}


def parse_part(raw: Any) -> WirePart:
    """Validate a raw part by dispatching on its ``type`` tag.

    Raises:
        ValueError: If the part has no type tag
        pydantic.ValidationError: If a known part is missing required fields
    """
    if isinstance(raw, WireModel):
        return raw  # type: ignore[return-value]

    part_type = raw.get("type") if isinstance(raw, dict) else None
    if not isinstance(part_type, str):
        raise ValueError("Wire part must be an object with a string 'type'")

    model = _PART_MODELS.get(part_type)
    if model is not None:
        return model.model_validate(raw)  # type: ignore[return-value]
    if is_tool_part_type(part_type):
        return ToolPart.model_validate(raw)
    return UnknownPart.model_validate(raw)


class WireMessage(WireModel):
    """A wire-format message."""

    id: str
    role: ConversationRole
    metadata: Any = None
    parts: list[WirePart] = Field(default_factory=list)

    @field_validator("parts", mode="before")
    @classmethod
    def parse_parts(cls, v: Any) -> Any:
        """Dispatch each raw part to its model by type tag."""
        if not isinstance(v, list):
            return v
        return [parse_part(part) for part in v]
