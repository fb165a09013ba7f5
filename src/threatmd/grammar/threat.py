"""
Grammar for threat description documents.

A threat document is a Markdown file laid out as:

    ---
    sid: ...            (YAML front matter, see ThreatMetadata)
    ---
    # <description>
    <details>
    ## Example
    ## Mitigations
    ## Condition         (a fenced code block in the condition language)
    ## Prerequisites
    ## References        (a bullet list of plain text items)
"""

from __future__ import annotations

import logging
from typing import List

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..core.buffer import TokenBuffer
from ..core.cursor import Cursor
from ..core.tokens import HeadingLevel

logger = logging.getLogger(__name__)


class MetadataError(ValueError):
    """The front matter of a document could not be read as threat metadata."""


class ThreatMetadata(BaseModel):
    """Fields read from the YAML front matter."""

    sid: str
    severity: str
    target: List[str]
    likelihood: str


class Threat(BaseModel):
    """A threat record, serialized with the aliases as keys."""

    model_config = ConfigDict(populate_by_name=True)

    sid: str = Field(alias="SID")
    severity: str
    target: List[str]
    description: str
    details: str
    example: str
    mitigations: str
    condition: str
    references: str
    prerequisites: str
    likelihood: str = Field(alias="Likelihood Of Attack")

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return self.model_dump(by_alias=True)


def parse_metadata(raw: str) -> ThreatMetadata:
    """Validate the raw front matter text."""
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise MetadataError(f"Metadata is not valid YAML: {e}") from e

    if not isinstance(data, dict):
        raise MetadataError(f"Metadata must be a mapping, got {type(data).__name__}")

    try:
        return ThreatMetadata.model_validate(data)
    except ValidationError as e:
        raise MetadataError(f"Invalid threat metadata: {e}") from e


def _body(buffer: TokenBuffer, cursor: Cursor) -> str:
    return buffer.render(cursor.multi(Cursor.text))


def parse_threat(
    markdown_input: str,
    condition_language: str = "python",
    reference_separator: str = ", ",
) -> Threat:
    """
    Parse one threat document.

    Raises:
        ParseError: the document does not have the expected structure.
        MetadataError: the front matter is not valid threat metadata.
    """
    buffer = TokenBuffer.from_markdown(markdown_input)
    cursor = buffer.open_cursor()

    metadata = parse_metadata(cursor.metadata())

    description = cursor.heading(HeadingLevel.H1)
    details = _body(buffer, cursor)

    cursor.named_heading(HeadingLevel.H2, "Example")
    example = _body(buffer, cursor)

    cursor.named_heading(HeadingLevel.H2, "Mitigations")
    mitigations = _body(buffer, cursor)

    cursor.named_heading(HeadingLevel.H2, "Condition")
    condition = buffer.literal_text(cursor.lang_block(condition_language))

    cursor.named_heading(HeadingLevel.H2, "Prerequisites")
    prerequisites = _body(buffer, cursor)

    cursor.named_heading(HeadingLevel.H2, "References")
    references = cursor.item_list()

    logger.debug(f"Parsed threat {metadata.sid} ({len(buffer)} tokens)")

    return Threat(
        sid=metadata.sid,
        severity=metadata.severity,
        target=metadata.target,
        likelihood=metadata.likelihood,
        description=description,
        details=details,
        example=example,
        mitigations=mitigations,
        condition=condition,
        prerequisites=prerequisites,
        references=reference_separator.join(references),
    )
