"""Structured request metadata stored on usage events."""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from src.database.models import OperationType

# Longer image prompts are rejected with a validation error
MAX_PROMPT_PREVIEW_CHARS = 200


class TextUsageMetadata(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["text"] = "text"
    project_id: str | None = None
    content_id: str | None = None
    category: str | None = None
    title: str | None = None
    topic: str | None = None
    target_format: str | None = None


class ImageUsageMetadata(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["image"] = "image"
    project_id: str | None = None
    content_id: str | None = None
    prompt: str | None = Field(default=None, max_length=MAX_PROMPT_PREVIEW_CHARS)
    size: str | None = None
    style: str | None = None


UsageMetadata = Annotated[
    Union[TextUsageMetadata, ImageUsageMetadata], Field(discriminator="kind")
]


def metadata_matches_operation(
    metadata: TextUsageMetadata | ImageUsageMetadata,
    operation_type: OperationType,
) -> bool:
    """Image metadata belongs to image generation only; everything else is text."""
    if OperationType(operation_type) == OperationType.IMAGE_GENERATION:
        return metadata.kind == "image"
    return metadata.kind == "text"
