import pytest
from reportlab.pdfbase import pdfmetrics

from app.services.image_fetch import ResolvedImage
from app.services.report_layout import (
    CHECKLIST_SECTION,
    HEADER_CURSOR_Y,
    ITEM_INDENT,
    MARGIN,
    PAGE_HEIGHT,
    PHOTO_HEIGHT,
    PHOTO_SECTION,
    PHOTO_WIDTH,
    REPORT_FONTS,
    SIGNATURE_BOTTOM_OFFSET,
    ChecklistEntry,
    ImageBlock,
    ReportContent,
    RuleBlock,
    TextBlock,
    font_path,
    plan_report,
    text_width,
    wrap_text,
)


def _image(width=400, height=200) -> ResolvedImage:
    return ResolvedImage(data=b"\x89PNG fake", width=width, height=height, mime="image/png")


def _entries(count, observation=None):
    return [
        ChecklistEntry(ordem=i, nome=f"Item {i}", status="OK", observation=observation)
        for i in range(1, count + 1)
    ]


def _content(**overrides) -> ReportContent:
    values = {
        "cliente_nome": "Maria Souza",
        "veiculo_modelo": "Gol",
        "veiculo_placa": "ABC1D23",
        "inspected_at": "01/02/2026, 10:00:00",
        "entries": _entries(6),
    }
    values.update(overrides)
    return ReportContent(**values)


def _page_index(layout, block) -> int:
    for index, page in enumerate(layout.pages):
        if any(candidate is block for candidate in page.blocks):
            return index
    raise AssertionError("block not placed")


def _bottom(block) -> float:
    if isinstance(block, TextBlock):
        return block.y + block.height
    if isinstance(block, ImageBlock):
        return block.y + block.height
    return block.y


def test_metadata_and_optional_insurer():
    texts = plan_report(_content()).texts()
    assert "Cliente: Maria Souza" in texts
    assert "Placa: ABC1D23" in texts
    assert not any(text.startswith("Seguradora:") for text in texts)

    texts = plan_report(_content(seguradora_nome="Porto")).texts()
    assert "Seguradora: Porto" in texts


def test_photo_section_omitted_without_photos():
    layout = plan_report(_content(photos=[]))
    assert layout.photo_count == 0
    assert PHOTO_SECTION not in layout.texts()
    assert len(layout.pages) == 1


def test_photos_start_on_their_own_page():
    layout = plan_report(_content(photos=[_image(), _image(), _image()]))
    assert layout.photo_count == 3
    title = next(b for b in layout.blocks(TextBlock) if b.text == PHOTO_SECTION)
    page = layout.pages[_page_index(layout, title)]
    assert not any(isinstance(b, TextBlock) and b.text.startswith("1. ") for b in page.blocks)
    assert _page_index(layout, title) == len(layout.pages) - 1


def test_photo_is_fit_and_centered_in_its_cell():
    layout = plan_report(_content(photos=[_image(800, 200)]))
    photo = layout.blocks(ImageBlock, role="photo")[0]
    assert photo.x == pytest.approx(MARGIN)
    assert photo.width == pytest.approx(PHOTO_WIDTH)
    assert photo.height == pytest.approx(PHOTO_WIDTH / 4)
    title = next(b for b in layout.blocks(TextBlock) if b.text == PHOTO_SECTION)
    cell_top = photo.y - (PHOTO_HEIGHT - photo.height) / 2
    assert cell_top > title.y


def test_photo_rows_break_pages():
    layout = plan_report(_content(photos=[_image() for _ in range(12)]))
    photos = layout.blocks(ImageBlock, role="photo")
    assert len(photos) == 12
    assert len({_page_index(layout, photo) for photo in photos}) > 1
    for photo in photos:
        assert photo.y + photo.height <= PAGE_HEIGHT - MARGIN


def test_odd_item_count_leaves_right_column_empty():
    layout = plan_report(_content(entries=_entries(3)))
    headers = [b for b in layout.blocks(TextBlock) if b.bold and b.text[:2] in {"1.", "2.", "3."}]
    assert [b.text for b in headers] == ["1. Item 1:", "2. Item 2:", "3. Item 3:"]
    first, second, third = headers
    assert first.y == second.y
    assert first.x < second.x
    assert third.x == first.x
    assert third.y > first.y


def test_item_observation_is_shown_only_when_present():
    texts = plan_report(_content(entries=_entries(2, observation="Risco"))).texts()
    assert texts.count("- Observação: Risco") == 2
    texts = plan_report(_content(entries=_entries(2))).texts()
    assert not any(text.startswith("- Observação") for text in texts)


def test_checklist_breaks_between_rows_only():
    long_note = "observacao longa " * 20
    layout = plan_report(_content(entries=_entries(60, observation=long_note)))
    assert len(layout.pages) > 2
    for entry_no in range(1, 61):
        header = next(b for b in layout.blocks(TextBlock) if b.text == f"{entry_no}. Item {entry_no}:")
        page = layout.pages[_page_index(layout, header)]
        status = [
            b
            for b in page.blocks
            if isinstance(b, TextBlock)
            and b.x == pytest.approx(header.x + ITEM_INDENT)
            and b.y == pytest.approx(header.y + header.height)
        ]
        assert status, f"item {entry_no} split across pages"
    for block in layout.blocks(TextBlock):
        assert block.y + block.height <= PAGE_HEIGHT - MARGIN + 0.01


def test_signature_snaps_to_bottom_on_short_report():
    layout = plan_report(_content(signature=_image(300, 100)))
    signature = layout.blocks(ImageBlock, role="signature")[0]
    assert signature.y == pytest.approx(PAGE_HEIGHT - SIGNATURE_BOTTOM_OFFSET)
    rule = layout.blocks(RuleBlock)[0]
    assert rule.y > signature.y + signature.height - 0.01
    name = layout.texts()[-1]
    assert name == "Maria Souza"


@pytest.mark.parametrize("count", [0, 10, 20, 26, 30, 34, 40, 52])
def test_signature_never_overlaps_drawn_content(count):
    layout = plan_report(_content(entries=_entries(count), signature=_image(300, 100)))
    signature = layout.blocks(ImageBlock, role="signature")[0]
    page = layout.pages[_page_index(layout, signature)]
    before = page.blocks[: next(i for i, b in enumerate(page.blocks) if b is signature)]
    for block in before:
        assert _bottom(block) <= signature.y + 0.01
    assert signature.y + signature.height <= PAGE_HEIGHT


def test_no_signature_block_without_signature():
    layout = plan_report(_content())
    assert layout.blocks(ImageBlock, role="signature") == []
    assert layout.blocks(RuleBlock) == []


def test_header_pushes_title_down():
    layout = plan_report(_content(header=_image(1000, 100)))
    title = layout.blocks(TextBlock)[0]
    assert title.text == "Checklist"
    assert title.y >= HEADER_CURSOR_Y
    assert layout.blocks(ImageBlock, role="header")[0].y == 0


def test_layout_is_deterministic():
    content = _content(entries=_entries(9, observation="x"), photos=[_image()], signature=_image())
    assert plan_report(content) == plan_report(content)
    assert CHECKLIST_SECTION in plan_report(content).texts()


def test_wrap_text_breaks_long_words():
    lines = wrap_text("A" * 200, 100, 10)
    assert len(lines) > 1
    assert "".join(lines) == "A" * 200


def test_text_is_measured_with_the_bundled_font():
    for bold, italic in REPORT_FONTS:
        assert font_path(bold, italic).is_file()
    assert text_width("Quilometragem", 10) == pytest.approx(pdfmetrics.stringWidth("Quilometragem", "Vera", 10))
    assert text_width("Quilometragem", 10, bold=True) > text_width("Quilometragem", 10)
    assert text_width("WWW", 10) > text_width("iii", 10)


def test_wrapped_lines_fit_their_box():
    entries = [
        ChecklistEntry(
            ordem=i,
            nome="Parachoque dianteiro com grade e faróis de neblina " * 2,
            status="Amassado, riscado e com pintura descascando " * 3,
            observation="Cliente informou colisão leve em estacionamento; WWMM@%% " * 4,
        )
        for i in range(1, 7)
    ]
    layout = plan_report(_content(entries=entries, cliente_nome="Maximiliano Wolfgang " * 8))
    for block in layout.blocks(TextBlock):
        for line in block.lines:
            assert text_width(line, block.size, block.bold, block.italic) <= block.width + 0.01, line
