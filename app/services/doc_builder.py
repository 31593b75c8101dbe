import asyncio
import io
import logging
from typing import Protocol
from uuid import uuid4

from docx import Document
from docx.enum.section import WD_ORIENT
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Emu
from docx.shared import Inches
from docx.shared import Mm
from docx.shared import Pt
from docx.shared import RGBColor

from app.core.config import settings
from app.models.piece_models import AssembledDocument
from app.models.piece_models import CellContent
from app.models.piece_models import DocumentSection
from app.models.piece_models import NormalizedImage
from app.models.piece_models import PieceRow
from app.models.piece_models import Placeholder

# Configure module logger
logger = logging.getLogger(__name__)

# Images are sized in pixels at 96 DPI; Word lays them out in EMU.
EMU_PER_PIXEL = 9525

PAGE_WIDTH = Mm(297)  # A4, landscape
PAGE_HEIGHT = Mm(210)
PAGE_MARGIN = Inches(0.5)

TITLE_SIZE = Pt(16)
HEADING_SIZE = Pt(12)
LABEL_SIZE = Pt(9)
LOAD_FAILED_COLOR = RGBColor(0xFF, 0x00, 0x00)

PROBLEM_LABEL = "[문제]"
SOLUTION_LABEL = "[해설]"
PLACEHOLDER_TEXT: dict[Placeholder, str] = {
    Placeholder.NO_IMAGE: "이미지 없음",
    Placeholder.LOAD_FAILED: "이미지 로드 실패",
}


class DocBuilderError(Exception):
    """Raised when DOCX generation fails"""


class DocumentSerializationError(DocBuilderError):
    """Raised when the assembled document cannot be written to bytes"""


class Normalizer(Protocol):
    async def normalize(self, url: str, max_width: int, max_height: int) -> NormalizedImage | None: ...


def section_heading(position: int) -> str:
    """Heading for the section at 1-based *position* (not the row's stored sequence)."""
    return f"문제 {position}"


def _cell(label: str, url: str | None, image: NormalizedImage | None) -> CellContent:
    if url is None:
        return CellContent(label=label, placeholder=Placeholder.NO_IMAGE)
    if image is None:
        return CellContent(label=label, placeholder=Placeholder.LOAD_FAILED)
    return CellContent(label=label, image=image)


async def _normalize_all(
    rows: list[PieceRow],
    normalizer: Normalizer,
    max_width: int,
    max_height: int,
    concurrency: int,
) -> dict[tuple[int, str], NormalizedImage | None]:
    """Normalize every present URL with at most *concurrency* jobs in flight.

    Results are keyed by (row index, side) so completion order is irrelevant.
    """
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def _job(index: int, side: str, url: str) -> tuple[int, str, NormalizedImage | None]:
        async with semaphore:
            return index, side, await normalizer.normalize(url, max_width, max_height)

    jobs = []
    for index, row in enumerate(rows):
        if row.problem_image_url is not None:
            jobs.append(_job(index, "problem", row.problem_image_url))
        if row.solution_image_url is not None:
            jobs.append(_job(index, "solution", row.solution_image_url))

    results = await asyncio.gather(*jobs)
    return {(index, side): image for index, side, image in results}


async def assemble(
    title: str,
    rows: list[PieceRow],
    normalizer: Normalizer,
    *,
    max_width: int | None = None,
    max_height: int | None = None,
    concurrency: int | None = None,
) -> AssembledDocument:
    """Build the worksheet layout: one problem/solution section per row, in input order."""
    max_width = settings.image_max_width if max_width is None else max_width
    max_height = settings.image_max_height if max_height is None else max_height
    concurrency = settings.image_fetch_concurrency if concurrency is None else concurrency

    images = await _normalize_all(rows, normalizer, max_width, max_height, concurrency)

    sections: list[DocumentSection] = []
    for index, row in enumerate(rows):
        position = index + 1
        sections.append(
            DocumentSection(
                heading=section_heading(position),
                page_break_before=position > 1,
                problem=_cell(PROBLEM_LABEL, row.problem_image_url, images.get((index, "problem"))),
                solution=_cell(SOLUTION_LABEL, row.solution_image_url, images.get((index, "solution"))),
            )
        )

    failed = sum(1 for s in sections for c in (s.problem, s.solution) if c.placeholder is Placeholder.LOAD_FAILED)
    logger.info("Assembled %d sections for '%s' (%d images failed to load)", len(sections), title, failed)
    return AssembledDocument(title=title, sections=sections)


# ---------------------------------------------------------------------------
# python-docx rendering
# ---------------------------------------------------------------------------


def _setup_page(doc) -> None:
    for section in doc.sections:
        section.orientation = WD_ORIENT.LANDSCAPE
        section.page_width = PAGE_WIDTH
        section.page_height = PAGE_HEIGHT
        section.top_margin = PAGE_MARGIN
        section.bottom_margin = PAGE_MARGIN
        section.left_margin = PAGE_MARGIN
        section.right_margin = PAGE_MARGIN


def _add_text(container, text: str, *, bold: bool = False, size: Pt | None = None, center: bool = False, color: RGBColor | None = None):
    p = container.add_paragraph()
    if center:
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER
    run = p.add_run(text)
    run.bold = bold
    if size is not None:
        run.font.size = size
    if color is not None:
        run.font.color.rgb = color
    return p


def _fill_cell(cell, content: CellContent) -> None:
    # A new cell already holds one empty paragraph; reuse it for the label.
    label_p = cell.paragraphs[0]
    label_p.alignment = WD_ALIGN_PARAGRAPH.CENTER
    label_run = label_p.add_run(content.label)
    label_run.bold = True
    label_run.font.size = LABEL_SIZE

    if content.image is not None:
        p = cell.add_paragraph()
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        p.add_run().add_picture(
            io.BytesIO(content.image.data),
            width=Emu(content.image.width * EMU_PER_PIXEL),
            height=Emu(content.image.height * EMU_PER_PIXEL),
        )
        return

    text = f"{content.label} {PLACEHOLDER_TEXT[content.placeholder]}"
    color = LOAD_FAILED_COLOR if content.placeholder is Placeholder.LOAD_FAILED else None
    _add_text(cell, text, center=True, color=color)


def _render_section(doc, section: DocumentSection, column_width: int) -> None:
    heading = _add_text(doc, section.heading, bold=True, size=HEADING_SIZE)
    if section.page_break_before:
        heading.paragraph_format.page_break_before = True
    doc.add_paragraph()

    table = doc.add_table(rows=1, cols=2)
    table.style = "Table Grid"
    table.autofit = False
    cells = table.rows[0].cells
    for cell, content in zip(cells, (section.problem, section.solution)):
        cell.width = Emu(column_width)
        _fill_cell(cell, content)

    doc.add_paragraph()


def render_docx(document: AssembledDocument) -> bytes:
    """Serialize *document* to DOCX bytes (blocking; run it in a worker thread)."""
    rid = str(uuid4())
    logger.info("[%s] Rendering '%s' with %d sections", rid, document.title, len(document.sections))
    try:
        doc = Document()
        _setup_page(doc)

        props = doc.core_properties
        props.author = settings.document_creator
        props.title = document.title
        props.comments = "학습지 Word 문서"

        _add_text(doc, document.title, bold=True, size=TITLE_SIZE, center=True)
        doc.add_paragraph()

        column_width = (PAGE_WIDTH - 2 * PAGE_MARGIN) // 2
        for section in document.sections:
            _render_section(doc, section, column_width)
    except Exception as err:
        logger.exception("[%s] Document assembly failed", rid)
        raise DocBuilderError("unexpected rendering error") from err

    try:
        bio = io.BytesIO()
        doc.save(bio)
    except Exception as err:
        logger.exception("[%s] Document serialization failed", rid)
        raise DocumentSerializationError("failed to serialize document") from err

    data = bio.getvalue()
    logger.info("[%s] Document ready (%d bytes)", rid, len(data))
    return data


async def build_docx(document: AssembledDocument) -> bytes:
    """Render *document* without blocking the event loop."""
    return await asyncio.to_thread(render_docx, document)
