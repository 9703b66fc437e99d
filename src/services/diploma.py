"""
Diploma PDF generation.

Fills the three text fields (name, major, degree) of the diploma template,
renders each one with a font chosen by script detection, flattens the form
and returns the finished PDF bytes.

Usage:
    from services.diploma import DiplomaGenerator

    generator = DiplomaGenerator()
    pdf_bytes = generator.generate("John Smith", "Computer Science", "Bachelor of Science")
"""

import logging
import os
import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

import fitz  # PyMuPDF

from domain.errors import AssetFetchError, DocumentGenerationError
from domain.models import FieldFill
from services.assets import (
    ASSET_IDS, CJK_FONT, LATIN_FONT, TEMPLATE,
    AssetProvider, build_asset_provider, fetch_all,
)

logger = logging.getLogger(__name__)

# Template form field names, in the order they are filled
FIELD_NAMES = ('major', 'name', 'degree')

# Names the fonts are registered under in each page's resources
FONT_RESOURCE_NAMES = {
    LATIN_FONT: 'WCULatin',
    CJK_FONT: 'WCUSerifSC',
}

# Fields with an auto (0) font size are drawn at this share of their height
AUTO_FONT_SIZE_RATIO = 0.75
# Horizontal inset for left/right aligned fields, in points
FIELD_PADDING = 2.0

_LATIN_TEXT = re.compile(r'[0-9A-Za-z\s]+')


class Script(Enum):
    LATIN = 'latin'
    OTHER = 'other'


def classify_script(text: str) -> Script:
    """
    Classify text as Latin/ASCII or other.

    Only ASCII letters, digits and whitespace count as Latin. A single other
    character (e.g. "Econ经") makes the whole string OTHER, as does the empty
    string.
    """
    return Script.LATIN if _LATIN_TEXT.fullmatch(text) else Script.OTHER


def font_key_for(text: str) -> str:
    """Asset id of the font used to render text."""
    return LATIN_FONT if classify_script(text) is Script.LATIN else CJK_FONT


@dataclass(frozen=True)
class ShrinkPolicy:
    """
    Width heuristic for long field values.

    Assumes every glyph is glyph_width units wide. When the estimated width
    exceeds the field's budget the font size becomes budget / len(text).
    """
    glyph_width: float = 40
    name_budget: float = 350
    major_budget: float = 450
    degree_budget: float = 450

    @classmethod
    def from_env(cls) -> 'ShrinkPolicy':
        return cls(
            glyph_width=float(os.environ.get('SHRINK_GLYPH_WIDTH', '40')),
            name_budget=float(os.environ.get('SHRINK_BUDGET_NAME', '350')),
            major_budget=float(os.environ.get('SHRINK_BUDGET_MAJOR', '450')),
            degree_budget=float(os.environ.get('SHRINK_BUDGET_DEGREE', '450')),
        )

    def budget_for(self, field_name: str) -> float:
        return {
            'name': self.name_budget,
            'major': self.major_budget,
            'degree': self.degree_budget,
        }[field_name]

    def font_size_for(self, field_name: str, text: str) -> Optional[float]:
        """
        Shrunk font size for text, or None to keep the field's default.

        Empty text never overflows.
        """
        if not text:
            return None

        budget = self.budget_for(field_name)
        if budget < len(text) * self.glyph_width:
            return budget / len(text)
        return None


def plan_fields(
    username: str,
    major: str,
    degree: str,
    policy: Optional[ShrinkPolicy] = None
) -> List[FieldFill]:
    """
    Compute the fill plan (text, size, font) for every diploma field.

    Pure function: identical inputs give identical plans.
    """
    policy = policy or ShrinkPolicy()
    values = {'major': major, 'name': username, 'degree': degree}

    return [
        FieldFill(
            field_name=name,
            text=values[name],
            font_size=policy.font_size_for(name, values[name]),
            font_key=font_key_for(values[name]),
        )
        for name in FIELD_NAMES
    ]


@dataclass
class _FieldSlot:
    """Location and default styling of a template form field."""
    name: str
    page_number: int
    xref: int
    rect: fitz.Rect
    font_size: float
    alignment: int
    color: Tuple[float, ...]


class DiplomaGenerator:
    """
    Produces filled, flattened diploma PDFs.

    Assets are loaded through an AssetProvider so the generator can run
    against HTTP, S3, a local directory or test fixtures.
    """

    def __init__(
        self,
        asset_provider: Optional[AssetProvider] = None,
        shrink_policy: Optional[ShrinkPolicy] = None,
        subset_fonts: bool = True
    ):
        self.asset_provider = asset_provider or build_asset_provider()
        self.shrink_policy = shrink_policy or ShrinkPolicy.from_env()
        self.subset_fonts = subset_fonts

    def generate(self, username: str, major: str, degree: str) -> bytes:
        """
        Generate a diploma PDF.

        Args:
            username: Name printed on the diploma
            major: Major printed on the diploma
            degree: Degree printed on the diploma

        Returns:
            bytes: The flattened PDF

        Raises:
            DocumentGenerationError: If an asset cannot be fetched, the template
                is malformed, a form field is missing, or a font cannot be embedded
        """
        start_time = time.time()

        fills = plan_fields(username, major, degree, self.shrink_policy)
        for fill in fills:
            logger.info(
                f"Field plan: {fill.field_name} font={fill.font_key} "
                f"size={fill.font_size if fill.font_size is not None else 'default'}"
            )

        try:
            assets = fetch_all(self.asset_provider, ASSET_IDS)
        except AssetFetchError as e:
            raise DocumentGenerationError(str(e)) from e

        doc = self._open_template(assets[TEMPLATE])
        try:
            fonts = self._load_fonts(assets)
            slots = self._locate_fields(doc, FIELD_NAMES)
            self._embed_fonts(doc, slots.values(), assets)

            for fill in fills:
                self._write_field(doc, slots[fill.field_name], fill, fonts[fill.font_key])

            self._flatten(doc, slots.values())

            if self.subset_fonts:
                self._subset(doc)

            pdf_bytes = doc.tobytes(garbage=3, deflate=True, no_new_id=True)
        finally:
            doc.close()

        logger.info(
            f"Diploma generated: {len(pdf_bytes):,} bytes in {time.time() - start_time:.3f}s"
        )
        return pdf_bytes

    def _open_template(self, template: bytes) -> fitz.Document:
        try:
            doc = fitz.open(stream=template, filetype='pdf')
        except Exception as e:
            raise DocumentGenerationError(f"Malformed diploma template: {e}") from e

        if not doc.is_pdf or doc.page_count == 0:
            doc.close()
            raise DocumentGenerationError("Malformed diploma template: no pages")
        return doc

    def _load_fonts(self, assets: Dict[str, bytes]) -> Dict[str, fitz.Font]:
        fonts = {}
        for font_key in (LATIN_FONT, CJK_FONT):
            try:
                fonts[font_key] = fitz.Font(fontbuffer=assets[font_key])
            except Exception as e:
                raise DocumentGenerationError(f"Failed to load font {font_key}: {e}") from e
        return fonts

    def _locate_fields(self, doc: fitz.Document, names: Iterable[str]) -> Dict[str, _FieldSlot]:
        wanted = set(names)
        slots: Dict[str, _FieldSlot] = {}

        for page in doc:
            for widget in page.widgets():
                name = widget.field_name
                if name not in wanted or name in slots:
                    continue
                if widget.field_type != fitz.PDF_WIDGET_TYPE_TEXT:
                    raise DocumentGenerationError(f"Form field '{name}' is not a text field")

                slots[name] = _FieldSlot(
                    name=name,
                    page_number=page.number,
                    xref=widget.xref,
                    rect=fitz.Rect(widget.rect),
                    font_size=widget.text_fontsize or 0,
                    alignment=self._alignment(doc, widget.xref),
                    color=tuple(widget.text_color or (0, 0, 0)),
                )

        for name in names:
            if name not in slots:
                raise DocumentGenerationError(f"Form field '{name}' not found in diploma template")
        return slots

    @staticmethod
    def _alignment(doc: fitz.Document, xref: int) -> int:
        """Quadding (/Q) of a field: 0 left, 1 centre, 2 right."""
        value_type, value = doc.xref_get_key(xref, 'Q')
        if value_type == 'int' and value in ('0', '1', '2'):
            return int(value)
        return 0

    def _embed_fonts(
        self,
        doc: fitz.Document,
        slots: Iterable[_FieldSlot],
        assets: Dict[str, bytes]
    ) -> None:
        for page_number in sorted({slot.page_number for slot in slots}):
            page = doc[page_number]
            for font_key, resource_name in FONT_RESOURCE_NAMES.items():
                try:
                    page.insert_font(fontname=resource_name, fontbuffer=assets[font_key])
                except Exception as e:
                    raise DocumentGenerationError(f"Failed to embed font {font_key}: {e}") from e

    def _write_field(
        self,
        doc: fitz.Document,
        slot: _FieldSlot,
        fill: FieldFill,
        font: fitz.Font
    ) -> None:
        """Draw the field's text into its rectangle as page content."""
        if not fill.text:
            return

        rect = slot.rect
        size = fill.font_size or slot.font_size or rect.height * AUTO_FONT_SIZE_RATIO
        width = font.text_length(fill.text, fontsize=size)

        if slot.alignment == 1:
            x = rect.x0 + (rect.width - width) / 2
        elif slot.alignment == 2:
            x = rect.x1 - FIELD_PADDING - width
        else:
            x = rect.x0 + FIELD_PADDING

        # Vertically centre the line between ascender and descender
        y = rect.y0 + (rect.height + (font.ascender + font.descender) * size) / 2

        doc[slot.page_number].insert_text(
            fitz.Point(x, y),
            fill.text,
            fontname=FONT_RESOURCE_NAMES[fill.font_key],
            fontsize=size,
            color=slot.color,
        )

    def _flatten(self, doc: fitz.Document, slots: Iterable[_FieldSlot]) -> None:
        """Remove the filled widgets and bake any others into page content."""
        for slot in slots:
            page = doc[slot.page_number]
            page.delete_widget(page.load_widget(slot.xref))

        if doc.is_form_pdf:
            doc.bake(annots=False, widgets=True)

    def _subset(self, doc: fitz.Document) -> None:
        try:
            doc.subset_fonts()
        except Exception as e:
            logger.warning(f"Font subsetting failed, embedding full fonts: {e}")
