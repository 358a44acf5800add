"""Printable sheet output: MusicXML rendered to SVG pages inside an HTML document."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, cast


def _escape_html(text: str) -> str:
    """Escape the three characters that are unsafe in HTML text content."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


class SheetRenderer(ABC):
    """Abstract sheet renderer."""

    @property
    @abstractmethod
    def default_extension(self) -> str:
        """Default filename extension for this renderer."""

    @abstractmethod
    def render(self, *, title: str, musicxml: str, subtitle: str = "") -> str:
        """Render MusicXML text into file content."""


class VerovioHtmlRenderer(SheetRenderer):
    """
    Render MusicXML into a self-contained HTML file with one inline SVG per page.

    The browser's Print → Save as PDF turns the result into the sheet PDF.
    A fresh verovio toolkit is created for every call and never shared.
    """

    # Verovio A4 layout constants (verovio abstract units; ~1 unit ≈ 0.1 mm)
    _PAGE_HEIGHT: int = 2970
    _PAGE_WIDTH: int = 2100
    _SCALE: int = 45  # single treble staff, a little larger than a grand staff
    _PAGE_MARGIN: int = 100

    @property
    def default_extension(self) -> str:
        return ".html"

    def render(self, *, title: str, musicxml: str, subtitle: str = "") -> str:
        return self.build_html(title, self.render_svgs(musicxml), subtitle=subtitle)

    def render_svgs(self, musicxml: str) -> list[str]:
        """
        Render MusicXML text to a list of SVG strings via verovio.

        Raises:
            ValueError: If verovio cannot load the MusicXML data.
        """
        import verovio

        tk = verovio.toolkit()
        tk.setOptions(
            {
                "pageHeight": self._PAGE_HEIGHT,
                "pageWidth": self._PAGE_WIDTH,
                "scale": self._SCALE,
                "pageMarginTop": self._PAGE_MARGIN,
                "pageMarginBottom": self._PAGE_MARGIN,
                "pageMarginLeft": self._PAGE_MARGIN,
                "pageMarginRight": self._PAGE_MARGIN,
                "adjustPageHeight": True,
            }
        )

        if not tk.loadData(musicxml):
            raise ValueError("verovio could not load the MusicXML data.")

        page_count: int = tk.getPageCount()
        return [self._render_page_svg(tk, page_no) for page_no in range(1, page_count + 1)]

    def _render_page_svg(self, toolkit: Any, page_no: int) -> str:
        """Render one page, tolerating bindings that reject keyword arguments."""
        try:
            return cast(str, toolkit.renderToSVG(pageNo=page_no, xmlDeclaration=False))
        except TypeError:
            return cast(str, toolkit.renderToSVG(page_no))

    def build_html(self, title: str, svgs: list[str], subtitle: str = "") -> str:
        """
        Wrap SVG pages in an HTML document.

        Each SVG sits in its own ``.page`` div; print styles break the page
        after every sheet except the last.
        """
        title_safe = _escape_html(title)
        heading = f"  <h1>{title_safe}</h1>\n" if title else ""
        if subtitle:
            heading += f'  <p class="subtitle">{_escape_html(subtitle)}</p>\n'
        pages = "\n".join(f'  <div class="page">{svg}</div>' for svg in svgs)

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8" />
  <title>{title_safe}</title>
  <style>
    body {{ font-family: Georgia, serif; background: #eee; margin: 0; padding: 2rem; }}
    h1 {{ text-align: center; font-size: 1.6rem; margin: 0 0 0.5rem; }}
    .subtitle {{ text-align: center; font-style: italic; margin: 0 0 2rem; }}
    .page {{ background: #fff; margin: 0 auto 3rem; max-width: 860px; padding: 1rem; }}
    .page svg {{ display: block; width: 100%; height: auto; }}
    @media print {{
      body {{ background: #fff; padding: 0; }}
      .page {{ margin: 0; max-width: 100%; padding: 0; page-break-after: always; }}
      .page:last-child {{ page-break-after: avoid; }}
    }}
  </style>
</head>
<body>
{heading}{pages}
</body>
</html>"""
