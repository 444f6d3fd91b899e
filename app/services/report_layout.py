"""Page layout of the inspection report.

Everything is measured in PDF points on an A4 page with the origin at the
top-left corner; ``y`` grows downwards. The planner only decides where each
block goes, the drawing itself happens in :mod:`app.services.os_pdf`.
"""

import pathlib
from dataclasses import dataclass, field, replace
from functools import lru_cache
from typing import Optional, Union

import reportlab
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont

from app.services.image_fetch import ResolvedImage

PAGE_WIDTH = 595.28
PAGE_HEIGHT = 841.89
MARGIN = 50.0
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN
LINE_HEIGHT = 1.2

# Text is measured and drawn with the Vera TrueType faces bundled with reportlab.
FONT_FAMILY = "VistoriaSans"
FONT_DIR = pathlib.Path(reportlab.__file__).resolve().parent / "fonts"
REPORT_FONTS = {
    (False, False): ("Vera", "Vera.ttf"),
    (True, False): ("VeraBd", "VeraBd.ttf"),
    (False, True): ("VeraIt", "VeraIt.ttf"),
    (True, True): ("VeraBI", "VeraBI.ttf"),
}

HEADER_CURSOR_Y = 150.0
TITLE_SIZE = 20.0
META_SIZE = 12.0
SECTION_SIZE = 14.0
ITEM_SIZE = 10.0

COLUMN_GAP = 25.0
COLUMN_WIDTH = (CONTENT_WIDTH - COLUMN_GAP) / 2
ITEM_INDENT = 15.0
ROW_GAP = 2.0
# Minimum free space at the bottom of the page to start a new row of items.
ROW_BREAK_THRESHOLD = 70.0

PHOTO_GAP = 20.0
PHOTO_WIDTH = (CONTENT_WIDTH - PHOTO_GAP) / 2
PHOTO_HEIGHT = 180.0

SIGNATURE_NEW_PAGE_Y = 600.0
SIGNATURE_BOTTOM_OFFSET = 200.0
SIGNATURE_SNAP_SLACK = 50.0
SIGNATURE_X = 150.0
SIGNATURE_WIDTH = 300.0
SIGNATURE_HEIGHT = 80.0
SIGNATURE_RULE_GAP = 5.0
SIGNATURE_RULE_COLOR = "#aaaaaa"

TITLE = "Checklist"
CHECKLIST_SECTION = "Itens Vistoriados"
PHOTO_SECTION = "Fotos Anexadas"


@dataclass(frozen=True)
class ChecklistEntry:
    ordem: int
    nome: str
    status: str
    observation: Optional[str] = None


@dataclass
class ReportContent:
    cliente_nome: str
    veiculo_modelo: str
    veiculo_placa: str
    inspected_at: str
    seguradora_nome: Optional[str] = None
    entries: list[ChecklistEntry] = field(default_factory=list)
    photos: list[ResolvedImage] = field(default_factory=list)
    signature: Optional[ResolvedImage] = None
    header: Optional[ResolvedImage] = None


@dataclass(frozen=True)
class TextBlock:
    x: float
    y: float
    width: float
    lines: tuple[str, ...]
    size: float
    bold: bool = False
    italic: bool = False
    align: str = "left"
    underline: bool = False

    @property
    def line_height(self) -> float:
        return self.size * LINE_HEIGHT

    @property
    def height(self) -> float:
        return len(self.lines) * self.line_height

    @property
    def text(self) -> str:
        return " ".join(self.lines)


@dataclass(frozen=True)
class ImageBlock:
    x: float
    y: float
    width: float
    height: float
    image: ResolvedImage
    role: str


@dataclass(frozen=True)
class RuleBlock:
    x1: float
    x2: float
    y: float
    color: str = SIGNATURE_RULE_COLOR


Block = Union[TextBlock, ImageBlock, RuleBlock]


@dataclass
class Page:
    blocks: list[Block] = field(default_factory=list)


@dataclass
class ReportLayout:
    pages: list[Page]
    width: float = PAGE_WIDTH
    height: float = PAGE_HEIGHT

    def blocks(self, kind=None, role: Optional[str] = None) -> list[Block]:
        found = []
        for page in self.pages:
            for block in page.blocks:
                if kind is not None and not isinstance(block, kind):
                    continue
                if role is not None and getattr(block, "role", None) != role:
                    continue
                found.append(block)
        return found

    def texts(self) -> list[str]:
        return [block.text for block in self.blocks(TextBlock)]

    @property
    def photo_count(self) -> int:
        return len(self.blocks(ImageBlock, role="photo"))


@lru_cache(maxsize=None)
def _font_name(bold: bool, italic: bool) -> str:
    name, filename = REPORT_FONTS[(bold, italic)]
    pdfmetrics.registerFont(TTFont(name, str(FONT_DIR / filename)))
    return name


def font_path(bold: bool = False, italic: bool = False) -> pathlib.Path:
    return FONT_DIR / REPORT_FONTS[(bold, italic)][1]


def text_width(text: str, size: float, bold: bool = False, italic: bool = False) -> float:
    return pdfmetrics.stringWidth(text, _font_name(bold, italic), size)


def _split_word(word: str, width: float, size: float, bold: bool, italic: bool) -> list[str]:
    parts: list[str] = []
    current = ""
    for ch in word:
        if current and text_width(current + ch, size, bold, italic) > width:
            parts.append(current)
            current = ch
        else:
            current += ch
    if current:
        parts.append(current)
    return parts


def wrap_text(
    text: str, width: float, size: float, bold: bool = False, italic: bool = False
) -> tuple[str, ...]:
    """Greedy word wrap; words wider than the box are broken by character."""
    lines: list[str] = []
    for paragraph in (text or "").split("\n"):
        current = ""
        for word in paragraph.split():
            candidate = f"{current} {word}" if current else word
            if text_width(candidate, size, bold, italic) <= width:
                current = candidate
                continue
            if current:
                lines.append(current)
            pieces = _split_word(word, width, size, bold, italic)
            lines.extend(pieces[:-1])
            current = pieces[-1]
        lines.append(current)
    return tuple(lines) or ("",)


def fit_image(image: ResolvedImage, x: float, y: float, box_w: float, box_h: float, valign_center: bool = True):
    """Scales the image to fit the box, keeping the aspect ratio, centered in it."""
    scale = min(box_w / max(image.width, 1), box_h / max(image.height, 1))
    width = image.width * scale
    height = image.height * scale
    left = x + (box_w - width) / 2
    top = y + (box_h - height) / 2 if valign_center else y
    return left, top, width, height


class _Cursor:
    def __init__(self) -> None:
        self.pages: list[Page] = [Page()]
        self.y = MARGIN

    @property
    def page(self) -> Page:
        return self.pages[-1]

    def new_page(self) -> None:
        self.pages.append(Page())
        self.y = MARGIN

    def add(self, block: Block) -> None:
        self.page.blocks.append(block)

    def paragraph(
        self,
        text: str,
        size: float,
        x: float = MARGIN,
        width: float = CONTENT_WIDTH,
        bold: bool = False,
        italic: bool = False,
        align: str = "left",
        underline: bool = False,
    ) -> TextBlock:
        block = TextBlock(
            x=x,
            y=self.y,
            width=width,
            lines=wrap_text(text, width, size, bold, italic),
            size=size,
            bold=bold,
            italic=italic,
            align=align,
            underline=underline,
        )
        self.add(block)
        self.y += block.height
        return block

    def move_down(self, size: float, lines: int = 1) -> None:
        self.y += lines * size * LINE_HEIGHT


def _item_blocks(entry: ChecklistEntry, x: float, y: float) -> list[TextBlock]:
    width = COLUMN_WIDTH
    inner = width - ITEM_INDENT
    blocks = [
        TextBlock(
            x=x,
            y=y,
            width=width,
            lines=wrap_text(f"{entry.ordem}. {entry.nome}:", width, ITEM_SIZE, bold=True),
            size=ITEM_SIZE,
            bold=True,
        )
    ]
    top = y + blocks[0].height
    status_block = TextBlock(
        x=x + ITEM_INDENT,
        y=top,
        width=inner,
        lines=wrap_text(f"- Status: {entry.status}", inner, ITEM_SIZE),
        size=ITEM_SIZE,
    )
    blocks.append(status_block)
    top += status_block.height
    if entry.observation:
        blocks.append(
            TextBlock(
                x=x + ITEM_INDENT,
                y=top,
                width=inner,
                lines=wrap_text(f"- Observação: {entry.observation}", inner, ITEM_SIZE, italic=True),
                size=ITEM_SIZE,
                italic=True,
            )
        )
    return blocks


def _blocks_height(blocks: list[TextBlock], y: float) -> float:
    if not blocks:
        return 0.0
    return max(block.y + block.height for block in blocks) - y


def _layout_header(cursor: _Cursor, content: ReportContent) -> None:
    if content.header is not None:
        header = content.header
        height = PAGE_WIDTH * header.height / max(header.width, 1)
        cursor.add(ImageBlock(x=0.0, y=0.0, width=PAGE_WIDTH, height=height, image=header, role="header"))
        cursor.y = max(HEADER_CURSOR_Y, height)
    cursor.paragraph(TITLE, TITLE_SIZE, bold=True, align="center")
    cursor.move_down(TITLE_SIZE, 2)


def _layout_metadata(cursor: _Cursor, content: ReportContent) -> None:
    cursor.paragraph(f"Cliente: {content.cliente_nome}", META_SIZE)
    cursor.paragraph(f"Veículo: {content.veiculo_modelo}", META_SIZE)
    cursor.paragraph(f"Placa: {content.veiculo_placa}", META_SIZE)
    cursor.paragraph(f"Data da Vistoria: {content.inspected_at}", META_SIZE)
    if content.seguradora_nome:
        cursor.paragraph(f"Seguradora: {content.seguradora_nome}", META_SIZE)
    cursor.move_down(META_SIZE, 2)


def _layout_checklist(cursor: _Cursor, entries: list[ChecklistEntry]) -> None:
    cursor.paragraph(CHECKLIST_SECTION, SECTION_SIZE, underline=True)
    cursor.move_down(SECTION_SIZE)
    left_x = MARGIN
    right_x = MARGIN + COLUMN_WIDTH + COLUMN_GAP
    for index in range(0, len(entries), 2):
        pair = entries[index:index + 2]
        left = _item_blocks(pair[0], left_x, 0.0)
        right = _item_blocks(pair[1], right_x, 0.0) if len(pair) > 1 else []
        row_height = max(_blocks_height(left, 0.0), _blocks_height(right, 0.0))
        remaining = PAGE_HEIGHT - cursor.y
        overflows = cursor.y + row_height > PAGE_HEIGHT - MARGIN and cursor.y > MARGIN
        if remaining < ROW_BREAK_THRESHOLD or overflows:
            cursor.new_page()
        start = cursor.y
        for block in left + right:
            cursor.add(replace(block, y=block.y + start))
        cursor.y = start + row_height + ROW_GAP


def _layout_photos(cursor: _Cursor, photos: list[ResolvedImage]) -> None:
    if not photos:
        return
    cursor.new_page()
    cursor.paragraph(PHOTO_SECTION, SECTION_SIZE, underline=True)
    cursor.move_down(SECTION_SIZE)
    columns = (MARGIN, MARGIN + PHOTO_WIDTH + PHOTO_GAP)
    for index in range(0, len(photos), 2):
        if cursor.y + PHOTO_HEIGHT > PAGE_HEIGHT - MARGIN:
            cursor.new_page()
        for column, image in zip(columns, photos[index:index + 2]):
            left, top, width, height = fit_image(image, column, cursor.y, PHOTO_WIDTH, PHOTO_HEIGHT)
            cursor.add(ImageBlock(x=left, y=top, width=width, height=height, image=image, role="photo"))
        cursor.y += PHOTO_HEIGHT + PHOTO_GAP


def _layout_signature(cursor: _Cursor, content: ReportContent) -> None:
    if content.signature is None:
        return
    if cursor.y > SIGNATURE_NEW_PAGE_Y:
        cursor.new_page()
    block_y = PAGE_HEIGHT - SIGNATURE_BOTTOM_OFFSET
    if cursor.y < block_y - SIGNATURE_SNAP_SLACK:
        cursor.y = block_y
    left, top, width, height = fit_image(
        content.signature, SIGNATURE_X, cursor.y, SIGNATURE_WIDTH, SIGNATURE_HEIGHT, valign_center=False
    )
    cursor.add(ImageBlock(x=left, y=top, width=width, height=height, image=content.signature, role="signature"))
    cursor.y += SIGNATURE_HEIGHT
    rule_y = cursor.y + SIGNATURE_RULE_GAP
    cursor.add(RuleBlock(x1=SIGNATURE_X, x2=SIGNATURE_X + SIGNATURE_WIDTH, y=rule_y))
    cursor.y = rule_y + SIGNATURE_RULE_GAP
    cursor.paragraph(content.cliente_nome, ITEM_SIZE, x=SIGNATURE_X, width=SIGNATURE_WIDTH, align="center")


def plan_report(content: ReportContent) -> ReportLayout:
    cursor = _Cursor()
    _layout_header(cursor, content)
    _layout_metadata(cursor, content)
    _layout_checklist(cursor, content.entries)
    _layout_photos(cursor, content.photos)
    _layout_signature(cursor, content)
    return ReportLayout(pages=cursor.pages)
