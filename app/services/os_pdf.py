from jinja2 import Template

from app.services.report_layout import (
    FONT_FAMILY,
    REPORT_FONTS,
    ImageBlock,
    ReportLayout,
    RuleBlock,
    TextBlock,
    font_path,
)


_TEMPLATE = Template(
    """
<!doctype html>
<html lang="pt-br">
<head>
  <meta charset="utf-8" />
  <style>
    @page {
      size: {{ page_width }}pt {{ page_height }}pt;
      margin: 0;
    }
    {% for face in font_faces %}
    @font-face {
      font-family: "{{ font_family }}";
      font-weight: {{ face.weight }};
      font-style: {{ face.style }};
      src: url("{{ face.src }}") format("truetype");
    }
    {% endfor %}
    * { box-sizing: border-box; }
    body {
      margin: 0;
      font-family: "{{ font_family }}";
      font-kerning: none;
      font-variant-ligatures: none;
      color: #000000;
    }
    .page {
      position: relative;
      width: {{ page_width }}pt;
      height: {{ page_height }}pt;
      overflow: hidden;
      page-break-after: always;
    }
    .page:last-child {
      page-break-after: auto;
    }
    .line {
      position: absolute;
      white-space: pre;
      overflow: visible;
    }
    .bold { font-weight: 700; }
    .italic { font-style: italic; }
    .underline { text-decoration: underline; }
    .rule {
      position: absolute;
      height: 0;
    }
    .image {
      position: absolute;
    }
  </style>
</head>
<body>
  {% for page in pages %}
    <div class="page">
      {% for block in page %}
        {% if block.kind == "text" %}
          {% for line in block.lines %}
            <div class="line {{ block.classes }}" style="left: {{ block.x }}pt; top: {{ line.top }}pt; width: {{ block.width }}pt; font-size: {{ block.size }}pt; line-height: {{ block.line_height }}pt; text-align: {{ block.align }};">{{ line.text }}</div>
          {% endfor %}
        {% elif block.kind == "image" %}
          <img class="image" src="{{ block.src }}" style="left: {{ block.x }}pt; top: {{ block.y }}pt; width: {{ block.width }}pt; height: {{ block.height }}pt;" />
        {% elif block.kind == "rule" %}
          <div class="rule" style="left: {{ block.x }}pt; top: {{ block.y }}pt; width: {{ block.width }}pt; border-top: 1pt solid {{ block.color }};"></div>
        {% endif %}
      {% endfor %}
    </div>
  {% endfor %}
</body>
</html>
""",
    autoescape=True,
)


def _pt(value: float) -> str:
    return f"{value:.2f}"


def _block_payload(block) -> dict:
    if isinstance(block, TextBlock):
        classes = [name for name, on in (("bold", block.bold), ("italic", block.italic), ("underline", block.underline)) if on]
        return {
            "kind": "text",
            "x": _pt(block.x),
            "width": _pt(block.width),
            "size": _pt(block.size),
            "line_height": _pt(block.line_height),
            "align": block.align,
            "classes": " ".join(classes),
            "lines": [
                {"text": text, "top": _pt(block.y + index * block.line_height)}
                for index, text in enumerate(block.lines)
            ],
        }
    if isinstance(block, ImageBlock):
        return {
            "kind": "image",
            "x": _pt(block.x),
            "y": _pt(block.y),
            "width": _pt(block.width),
            "height": _pt(block.height),
            "src": block.image.data_uri,
        }
    if isinstance(block, RuleBlock):
        return {
            "kind": "rule",
            "x": _pt(block.x1),
            "y": _pt(block.y),
            "width": _pt(block.x2 - block.x1),
            "color": block.color,
        }
    raise TypeError(f"bloco desconhecido: {block!r}")


def _font_faces() -> list[dict]:
    return [
        {
            "weight": 700 if bold else 400,
            "style": "italic" if italic else "normal",
            "src": font_path(bold, italic).as_uri(),
        }
        for bold, italic in REPORT_FONTS
    ]


def render_report_html(layout: ReportLayout) -> str:
    pages = [[_block_payload(block) for block in page.blocks] for page in layout.pages]
    return _TEMPLATE.render(
        font_family=FONT_FAMILY,
        font_faces=_font_faces(),
        page_width=_pt(layout.width),
        page_height=_pt(layout.height),
        pages=pages,
    )


def render_report_pdf(layout: ReportLayout) -> bytes:
    from weasyprint import HTML

    html = render_report_html(layout)
    return HTML(string=html).write_pdf()
