import asyncio
import io
import zipfile

import pytest
from docx import Document
from docx.enum.section import WD_ORIENT
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Inches
from docx.shared import RGBColor
from pydantic import ValidationError

from app.models.piece_models import AssembledDocument
from app.models.piece_models import CellContent
from app.models.piece_models import DocumentSection
from app.models.piece_models import NormalizedImage
from app.models.piece_models import PieceRow
from app.models.piece_models import Placeholder
from app.services.doc_builder import EMU_PER_PIXEL
from app.services.doc_builder import DocBuilderError
from app.services.doc_builder import assemble
from app.services.doc_builder import build_docx
from app.services.doc_builder import render_docx


class FakeNormalizer:
    """Returns canned images per URL, finishing in an order set by *delays*."""

    def __init__(self, images, delays=None):
        self.images = images
        self.delays = delays or {}
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def normalize(self, url, max_width, max_height):
        self.calls.append((url, max_width, max_height))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(url, 0))
            return self.images.get(url)
        finally:
            self.in_flight -= 1


@pytest.fixture
def png(make_image_bytes):
    def _png(width=40, height=20, color="white"):
        return NormalizedImage(data=make_image_bytes("PNG", (width, height), color=color), width=width, height=height)

    return _png


def _rows(*pairs):
    return [PieceRow(sequence=seq, problem_image_url=p, solution_image_url=s) for seq, p, s in pairs]


@pytest.mark.asyncio
async def test_assemble_keeps_input_order_regardless_of_completion(png):
    rows = _rows((1, "p1", "s1"), (2, "p2", "s2"), (3, "p3", "s3"))
    images = {f"{side}{i}": png(10 * i, 10) for i in range(1, 4) for side in "ps"}
    # First row finishes last
    delays = {"p1": 0.05, "s1": 0.04, "p2": 0.0, "s2": 0.01, "p3": 0.02, "s3": 0.0}

    doc = await assemble("Title", rows, FakeNormalizer(images, delays), concurrency=6)

    assert [s.problem.image.width for s in doc.sections] == [10, 20, 30]
    assert [s.solution.image.width for s in doc.sections] == [10, 20, 30]


@pytest.mark.asyncio
async def test_assemble_numbers_by_position_not_sequence(png):
    rows = _rows((3, None, None), (7, None, None), (20, None, None))
    doc = await assemble("T", rows, FakeNormalizer({}))

    assert [s.heading for s in doc.sections] == ["문제 1", "문제 2", "문제 3"]
    assert [s.page_break_before for s in doc.sections] == [False, True, True]


@pytest.mark.asyncio
async def test_assemble_distinguishes_missing_and_failed_images(png):
    rows = _rows((1, "https://img/broken.png", None))
    normalizer = FakeNormalizer({})

    doc = await assemble("T", rows, normalizer)

    section = doc.sections[0]
    assert section.problem.placeholder is Placeholder.LOAD_FAILED
    assert section.solution.placeholder is Placeholder.NO_IMAGE
    # Absent URLs are never fetched
    assert [c[0] for c in normalizer.calls] == ["https://img/broken.png"]


@pytest.mark.asyncio
async def test_assemble_bounds_concurrency_and_passes_limits(png):
    rows = _rows(*[(i, f"p{i}", f"s{i}") for i in range(1, 7)])
    images = {f"{side}{i}": png() for i in range(1, 7) for side in "ps"}
    normalizer = FakeNormalizer(images, {url: 0.01 for url in images})

    await assemble("T", rows, normalizer, max_width=300, max_height=200, concurrency=2)

    assert normalizer.max_in_flight <= 2
    assert len(normalizer.calls) == 12
    assert all(c[1:] == (300, 200) for c in normalizer.calls)


@pytest.mark.asyncio
async def test_assemble_empty_rows():
    doc = await assemble("T", [], FakeNormalizer({}))
    assert doc.sections == []


def test_cell_requires_exactly_one_content(png):
    with pytest.raises(ValidationError):
        CellContent(label="[문제]")
    with pytest.raises(ValidationError):
        CellContent(label="[문제]", image=png(), placeholder=Placeholder.NO_IMAGE)


@pytest.fixture
def sample_document(png):
    def section(position, problem, solution):
        return DocumentSection(
            heading=f"문제 {position}",
            page_break_before=position > 1,
            problem=problem,
            solution=solution,
        )

    return AssembledDocument(
        title="중간고사 대비",
        sections=[
            section(1, CellContent(label="[문제]", image=png(520, 340)), CellContent(label="[해설]", image=png(100, 50))),
            section(2, CellContent(label="[문제]", image=png()), CellContent(label="[해설]", placeholder=Placeholder.NO_IMAGE)),
            section(3, CellContent(label="[문제]", image=png()), CellContent(label="[해설]", placeholder=Placeholder.LOAD_FAILED)),
        ],
    )


def _cell_text(cell):
    return "\n".join(p.text for p in cell.paragraphs)


def test_render_docx_layout(sample_document):
    doc = Document(io.BytesIO(render_docx(sample_document)))

    title = doc.paragraphs[0]
    assert title.text == "중간고사 대비"
    assert title.runs[0].bold is True
    assert title.alignment == WD_ALIGN_PARAGRAPH.CENTER

    headings = [p for p in doc.paragraphs if p.text.startswith("문제 ")]
    assert [h.text for h in headings] == ["문제 1", "문제 2", "문제 3"]
    assert [bool(h.paragraph_format.page_break_before) for h in headings] == [False, True, True]

    assert len(doc.tables) == 3
    first_problem, first_solution = doc.tables[0].rows[0].cells
    assert len(first_problem._tc.xpath(".//wp:inline")) == 1
    assert len(first_solution._tc.xpath(".//wp:inline")) == 1
    assert _cell_text(first_problem).startswith("[문제]")
    assert _cell_text(first_solution).startswith("[해설]")

    second_solution = doc.tables[1].rows[0].cells[1]
    assert "[해설] 이미지 없음" in _cell_text(second_solution)
    assert not second_solution._tc.xpath(".//wp:inline")


def test_render_docx_image_size_in_emu(sample_document):
    doc = Document(io.BytesIO(render_docx(sample_document)))
    first = doc.inline_shapes[0]
    assert first.width == 520 * EMU_PER_PIXEL
    assert first.height == 340 * EMU_PER_PIXEL


def test_render_docx_page_geometry(sample_document):
    doc = Document(io.BytesIO(render_docx(sample_document)))
    assert len(doc.sections) == 1
    section = doc.sections[0]
    assert section.orientation == WD_ORIENT.LANDSCAPE
    assert section.page_width > section.page_height
    for margin in (section.top_margin, section.bottom_margin, section.left_margin, section.right_margin):
        assert margin == Inches(0.5)


def test_render_docx_load_failed_placeholder_is_red():
    document = AssembledDocument(
        title="T",
        sections=[
            {
                "heading": "문제 1",
                "page_break_before": False,
                "problem": {"label": "[문제]", "placeholder": "load-failed"},
                "solution": {"label": "[해설]", "placeholder": "no-image"},
            }
        ],
    )
    doc = Document(io.BytesIO(render_docx(document)))
    problem, solution = doc.tables[0].rows[0].cells

    failed_runs = [r for p in problem.paragraphs for r in p.runs if r.text == "[문제] 이미지 로드 실패"]
    assert failed_runs and failed_runs[0].font.color.rgb == RGBColor(0xFF, 0x00, 0x00)
    missing_runs = [r for p in solution.paragraphs for r in p.runs if r.text == "[해설] 이미지 없음"]
    assert missing_runs and missing_runs[0].font.color.rgb is None


def test_render_docx_is_deterministic(sample_document):
    first = zipfile.ZipFile(io.BytesIO(render_docx(sample_document)))
    second = zipfile.ZipFile(io.BytesIO(render_docx(sample_document)))

    content = [n for n in first.namelist() if n.startswith("word/")]
    assert content == [n for n in second.namelist() if n.startswith("word/")]
    for name in content:
        assert first.read(name) == second.read(name), name


def test_render_docx_wraps_failures(sample_document, monkeypatch):
    def broken_document(*_args, **_kwargs):
        raise RuntimeError("no template")

    monkeypatch.setattr("app.services.doc_builder.Document", broken_document)
    with pytest.raises(DocBuilderError):
        render_docx(sample_document)


@pytest.mark.asyncio
async def test_build_docx_returns_zip_bytes(sample_document):
    data = await build_docx(sample_document)
    assert data[:2] == b"PK"
