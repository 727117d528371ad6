"""Wire format for chunk messages (JSON metadata carried as message content)."""

import json
from typing import Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError

from common.constants import CHUNK_KIND
from common.exceptions import ChunkValidationError


class ChunkMetadata(BaseModel):
    """
    Metadata sent alongside each chunk payload.

    Field names on the wire are camelCase (``objectKey``, ``objectSize``);
    Python code uses the snake_case attribute names. Types are strict so a
    message from unrelated traffic with look-alike fields does not coerce
    into a chunk record.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    kind: Literal[CHUNK_KIND]
    index: StrictInt
    total: StrictInt
    object_key: StrictStr = Field(alias="objectKey")
    object_size: StrictInt = Field(alias="objectSize")
    timestamp: StrictInt

    def to_dict(self) -> dict:
        """Serialize to a dict with wire field names."""
        return self.model_dump(by_alias=True)

    def to_json(self) -> str:
        """Serialize to compact JSON text."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json(cls, data: Union[str, bytes]) -> "ChunkMetadata":
        """Deserialize from JSON text, raising on anything that is not a chunk record."""
        return cls.model_validate_json(data)


def make_metadata(
    index: int,
    total: int,
    object_key: str,
    object_size: int,
    timestamp: int,
) -> ChunkMetadata:
    """Build a chunk metadata record with the chunk-message discriminator set."""
    return ChunkMetadata(
        kind=CHUNK_KIND,
        index=index,
        total=total,
        object_key=object_key,
        object_size=object_size,
        timestamp=timestamp,
    )


def parse_chunk_message(raw: Any) -> Optional[ChunkMetadata]:
    """
    Interpret inbound message content as chunk metadata.

    Args:
        raw: JSON text/bytes, an already-decoded mapping, or a ChunkMetadata

    Returns:
        ChunkMetadata, or None if the message is not a chunk message
        (bad JSON, wrong kind, missing or wrongly typed fields)
    """
    if isinstance(raw, ChunkMetadata):
        return raw

    if isinstance(raw, (str, bytes, bytearray)):
        try:
            raw = json.loads(raw)
        except (ValueError, RecursionError):
            return None

    if not isinstance(raw, Mapping):
        return None

    if raw.get("kind") != CHUNK_KIND:
        return None

    try:
        return ChunkMetadata.model_validate(dict(raw))
    except ValidationError:
        return None


def check_metadata(meta: ChunkMetadata) -> None:
    """
    Range-check a structurally valid chunk record.

    Raises:
        ChunkValidationError: If total, index or object size are out of range
    """
    if meta.total < 1:
        raise ChunkValidationError(f"total must be >= 1, got {meta.total}")
    if meta.index < 0 or meta.index >= meta.total:
        raise ChunkValidationError(
            f"index {meta.index} out of range for total {meta.total}"
        )
    if meta.object_size < 0:
        raise ChunkValidationError(f"objectSize must be >= 0, got {meta.object_size}")
