# metastrip/models.py
"""Data model for tag extraction and the grouped metadata report."""

from dataclasses import dataclass
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class RawTag:
    """A single metadata entry as read from an image container.

    ``value`` is empty when the tag has no readable description.
    """
    directory: str
    name: str
    value: str = ""

    @property
    def key(self) -> str:
        """Composite key used in the report mappings."""
        return f"{self.directory} - {self.name}"


class MetadataGroup(BaseModel):
    """One named category of the report."""

    model_config = ConfigDict(populate_by_name=True)

    group_name: str = Field(alias="groupName")
    data: Dict[str, str] = Field(default_factory=dict)
    has_data: bool = Field(default=False, alias="hasData")

    @classmethod
    def build(cls, group_name: str, data: Dict[str, str]) -> "MetadataGroup":
        return cls(group_name=group_name, data=data, has_data=bool(data))


class ImageMetadataReport(BaseModel):
    """Grouped metadata view of one uploaded image.

    ``file_size`` is the upload length and ``mime_type`` the type declared by
    the caller; neither is derived from the decoded image.
    """

    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(alias="fileName")
    file_size: int = Field(alias="fileSize")
    mime_type: str | None = Field(default=None, alias="mimeType")
    all_tags: Dict[str, str] = Field(default_factory=dict, alias="exifData")
    has_metadata: bool = Field(default=False, alias="hasMetadata")

    camera_info: MetadataGroup = Field(alias="cameraInfo")
    location_info: MetadataGroup = Field(alias="locationInfo")
    date_time_info: MetadataGroup = Field(alias="dateTimeInfo")
    image_info: MetadataGroup = Field(alias="imageInfo")
    other_info: MetadataGroup = Field(alias="otherInfo")

    def groups(self) -> list[MetadataGroup]:
        return [self.camera_info, self.location_info, self.date_time_info, self.image_info, self.other_info]
