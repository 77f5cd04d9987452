import enum
import uuid
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field as SchemaField, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy import Column, JSON, Text
from sqlmodel import Field, SQLModel


def generate_drawing_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp, the form SQLite hands back on read."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Drawing(SQLModel, table=True):
    """Persisted drawing record."""
    id: str = Field(default_factory=generate_drawing_id, primary_key=True)
    name: str
    image_data: str = Field(sa_type=Text)
    original_image: Optional[str] = Field(default=None, sa_type=Text)
    # SQLModel reserves `metadata` for the table registry.
    metadata_: Optional[Dict[str, Any]] = Field(
        default=None, sa_column=Column("metadata", JSON, nullable=True)
    )
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow, index=True)


class DrawingMetadata(BaseModel):
    """Free-form annotation; the recognised keys are validated, the rest kept as-is."""
    model_config = ConfigDict(extra="allow")

    width: Optional[int] = SchemaField(default=None, ge=0)
    height: Optional[int] = SchemaField(default=None, ge=0)
    format: Optional[str] = None
    tools_used: Optional[List[str]] = None


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DrawingCreate(_CamelModel):
    """Schema for creating a drawing."""
    name: Optional[str] = None
    image_data: str = SchemaField(min_length=1)
    original_image: Optional[str] = None
    metadata: Optional[DrawingMetadata] = None

    def metadata_dict(self) -> Optional[Dict[str, Any]]:
        if self.metadata is None:
            return None
        return self.metadata.model_dump(exclude_unset=True)


class DrawingUpdate(_CamelModel):
    """Schema for updating a drawing. Omitted fields are left untouched."""
    name: Optional[str] = None
    image_data: Optional[str] = SchemaField(default=None, min_length=1)
    original_image: Optional[str] = None
    metadata: Optional[DrawingMetadata] = None

    @field_validator("image_data")
    @classmethod
    def image_data_cannot_be_cleared(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            raise ValueError("imageData is required and cannot be cleared")
        return v

    def to_patch(self) -> "DrawingPatch":
        values: Dict[str, Any] = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if name == "metadata" and value is not None:
                value = value.model_dump(exclude_unset=True)
            values[name] = value
        return DrawingPatch(**values)


class DrawingRead(_CamelModel):
    """Schema for reading drawing data."""
    id: str
    name: str
    image_data: str
    original_image: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, drawing: Drawing) -> "DrawingRead":
        return cls(
            id=drawing.id,
            name=drawing.name,
            image_data=drawing.image_data,
            original_image=drawing.original_image,
            metadata=drawing.metadata_,
            created_at=drawing.created_at,
            updated_at=drawing.updated_at,
        )


class Unset(enum.Enum):
    """Marker for a patch field the caller did not send."""
    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"


UNSET = Unset.UNSET


@dataclass(frozen=True)
class DrawingPatch:
    """
    Tri-state partial update.

    Each field is UNSET (leave alone), None (clear) or a new value.
    """
    name: Union[str, None, Unset] = UNSET
    image_data: Union[str, None, Unset] = UNSET
    original_image: Union[str, None, Unset] = UNSET
    metadata: Union[Dict[str, Any], None, Unset] = UNSET

    def changed_fields(self) -> List[str]:
        return [f.name for f in fields(self) if getattr(self, f.name) is not UNSET]
