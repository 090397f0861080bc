"""Example endpoint accepting JSON or bracket-notation form bodies."""

from pydantic import BaseModel, Field

from formschema.core.logger import LogIcon, logger
from formschema.core.router import Router

router = Router(__file__, prefix="/documents")


class Section(BaseModel):
    """Nested section, submitted as ``meta[title]`` and ``meta[tags][]`` fields."""

    title: str
    tags: list[str] = Field(default_factory=list, alias="tags[]")


class DocumentForm(BaseModel):
    """Document submission; ``texts[]`` mirrors the HTML field name."""

    name: str
    texts: list[str] = Field(default_factory=list, alias="texts[]")
    meta: Section | None = None


class DocumentSummary(BaseModel):
    name: str
    texts: int
    tags: list[str]


@router.post("/")
async def submit_document(body: DocumentForm) -> DocumentSummary:
    logger.info("Document received", icon=LogIcon.FORM, name=body.name, texts=len(body.texts))
    return DocumentSummary(
        name=body.name,
        texts=len(body.texts),
        tags=body.meta.tags if body.meta else [],
    )
