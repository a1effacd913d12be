from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

TILE_SLOTS = (1, 2, 3, 4)


class ProjectImage(BaseModel):
    url: str
    alt: str | None = None


class Project(BaseModel):
    """Объект недвижимости из Sanity."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    slug: str
    name: str
    location: str | None = None
    property_type: str | None = None
    bedrooms: str | None = None
    developer: str | None = None
    starting_price_aed: float | None = Field(None, alias="startingPriceAED")
    size_range: str | None = None
    description: str | None = None
    listing_url: str | None = None
    top_tile: int | None = Field(None, ge=1, le=4)
    image_url: str | None = None
    images: list[ProjectImage] = Field(default_factory=list, max_length=5)

    @field_validator("bedrooms", mode="before")
    @classmethod
    def bedrooms_as_text(cls, value: Any) -> Any:
        """В старых документах bedrooms хранился числом."""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value)) if float(value).is_integer() else str(value)
        return value

    @field_validator("images", mode="before")
    @classmethod
    def drop_empty_images(cls, value: Any) -> Any:
        if not value:
            return []
        return [image for image in value if isinstance(image, dict) and image.get("url")]


class TileAvailability(BaseModel):
    tile: int
    available: bool
    conflicts: int
