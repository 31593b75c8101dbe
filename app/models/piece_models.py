from enum import Enum

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator
from pydantic import model_validator


class PieceRow(BaseModel):
    """One problem/solution image pair of a worksheet, in `seq` order."""

    model_config = ConfigDict(frozen=True)

    sequence: int
    problem_image_url: str | None = None
    solution_image_url: str | None = None

    @field_validator("problem_image_url", "solution_image_url", mode="before")
    @classmethod
    def blank_url_is_absent(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class NormalizedImage(BaseModel):
    """PNG bytes ready for embedding, with their pixel size."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    width: int = Field(ge=1)
    height: int = Field(ge=1)


class Placeholder(str, Enum):
    NO_IMAGE = "no-image"
    LOAD_FAILED = "load-failed"


class CellContent(BaseModel):
    """A table cell: a label plus either an image or a placeholder, never both."""

    label: str
    image: NormalizedImage | None = None
    placeholder: Placeholder | None = None

    @model_validator(mode="after")
    def image_xor_placeholder(self) -> "CellContent":
        if (self.image is None) == (self.placeholder is None):
            raise ValueError("cell must hold exactly one of image or placeholder")
        return self


class DocumentSection(BaseModel):
    heading: str
    page_break_before: bool
    problem: CellContent
    solution: CellContent


class AssembledDocument(BaseModel):
    title: str
    sections: list[DocumentSection]


class WordExportRequest(BaseModel):
    title: str | None = None


class PieceImageUrls(BaseModel):
    problem_img_urls: list[str]
    solution_img_urls: list[str]
