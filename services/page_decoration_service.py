"""
Page decoration for printable reports
Draws the header/footer chrome repeated on every page: organization
identity, logo, generation date and page number.
"""

import base64
import binascii
import logging
from io import BytesIO
from urllib.parse import unquote, unquote_to_bytes, urlsplit

from reportlab.lib import colors
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader

from config import Config
from models.logo import LogoBytes, LogoUrl
from utils.exceptions import DecorationResourceError
from utils.formatting import format_long_date

logger = logging.getLogger(__name__)

HEADER_HEIGHT = 38 * mm
HEADER_TEXT_X = 50 * mm
LOGO_X = 15 * mm
LOGO_TOP = 6 * mm
LOGO_SIZE = 26 * mm
PAGE_SIDE_MARGIN = 15 * mm
FOOTER_OFFSET = 15 * mm

TEXT_GREY = colors.Color(100 / 255.0, 100 / 255.0, 100 / 255.0)
DATE_GREY = colors.Color(120 / 255.0, 120 / 255.0, 120 / 255.0)
RULE_GREY = colors.Color(200 / 255.0, 200 / 255.0, 200 / 255.0)

# Fields of a wrapped storage object that may carry the logo location, in priority order
LOGO_URL_FIELDS = ('signedUrl', 'url', 'src', 'href', 'path')


class PageDecorationService:
    """Header and footer chrome for reportlab canvases"""

    @staticmethod
    def _page_size(canvas, page_size):
        return page_size or canvas._pagesize

    # ------------------------------------------------------------------
    # Logo handling
    # ------------------------------------------------------------------
    @staticmethod
    def _decode_data_uri(text):
        header, _, payload = text.partition(',')
        try:
            if ';base64' in header:
                return base64.b64decode(payload, validate=True)
            return unquote_to_bytes(payload)
        except (binascii.Error, ValueError) as exc:
            raise DecorationResourceError(f"Invalid data URI for logo: {exc}") from exc

    @staticmethod
    def _local_path(location):
        """File path for a local logo location; remote URLs are never fetched"""
        parts = urlsplit(location)
        if parts.scheme == 'file':
            return unquote(parts.path)
        # A one letter scheme is a Windows drive, not a URL
        if len(parts.scheme) > 1:
            raise DecorationResourceError(
                f"Remote logo {location!r} is not fetched; pass the image bytes or a data URI")
        return location

    @staticmethod
    def _resolve(reference):
        if reference is None:
            return None
        if isinstance(reference, (LogoBytes, LogoUrl)):
            return reference
        if isinstance(reference, (bytes, bytearray, memoryview)):
            data = bytes(reference)
            return LogoBytes(data) if data else None
        if isinstance(reference, str):
            text = reference.strip()
            if not text:
                return None
            if text.startswith('data:'):
                return LogoBytes(PageDecorationService._decode_data_uri(text))
            return LogoUrl(PageDecorationService._local_path(text))
        if isinstance(reference, (list, tuple)):
            return PageDecorationService._resolve(reference[0]) if reference else None
        if hasattr(reference, 'read'):
            return PageDecorationService._resolve(reference.read())
        for field in LOGO_URL_FIELDS:
            if isinstance(reference, dict):
                value = reference.get(field)
            else:
                value = getattr(reference, field, None)
            if value:
                return PageDecorationService._resolve(value)
        raise DecorationResourceError(f"Unsupported logo reference: {type(reference).__name__}")

    @staticmethod
    def resolve_logo(reference):
        """Resolve any accepted logo reference to LogoBytes, LogoUrl or None.

        Accepts a direct reference (local path, file: URL, data URI, bytes,
        file object), a wrapped object exposing one of LOGO_URL_FIELDS (first
        present wins), or a list whose first element is resolved the same way.
        Remote URLs are not downloaded. Failures are logged and treated as
        "no logo".
        """
        try:
            return PageDecorationService._resolve(reference)
        except Exception as exc:
            logger.warning("Omitting logo: %s", exc)
            return None

    @staticmethod
    def draw_logo(canvas, logo, x, y, width=LOGO_SIZE, height=LOGO_SIZE):
        """Draw a resolved logo; returns False (and logs) when it cannot be drawn.

        In-memory logos get a temporary handle that is closed right after
        this single draw.
        """
        handle = None
        try:
            if isinstance(logo, LogoBytes):
                handle = BytesIO(logo.data)
                image = ImageReader(handle)
            elif isinstance(logo, LogoUrl):
                image = PageDecorationService._local_path(logo.location)
            else:
                raise DecorationResourceError(f"Unresolved logo reference: {type(logo).__name__}")
            canvas.drawImage(image, x, y, width=width, height=height,
                             preserveAspectRatio=True, anchor='c', mask='auto')
            return True
        except Exception as exc:
            error = exc if isinstance(exc, DecorationResourceError) else DecorationResourceError(str(exc))
            logger.warning("Could not draw logo, rendering without it: %s", error)
            return False
        finally:
            if handle is not None:
                handle.close()

    # ------------------------------------------------------------------
    # Header / footer
    # ------------------------------------------------------------------
    @staticmethod
    def draw_header(canvas, metadata, page_size=None):
        """Logo, organization name, subtitle, generation date and a rule under the band"""
        width, height = PageDecorationService._page_size(canvas, page_size)
        organization_name = metadata.organization_name or Config.ORGANIZATION_NAME

        canvas.saveState()
        canvas.setFillColor(colors.white)
        canvas.rect(0, height - HEADER_HEIGHT, width, HEADER_HEIGHT, stroke=0, fill=1)

        logo = PageDecorationService.resolve_logo(metadata.logo)
        if logo is not None:
            PageDecorationService.draw_logo(canvas, logo, LOGO_X, height - LOGO_TOP - LOGO_SIZE)

        canvas.setFillColor(colors.black)
        canvas.setFont('Helvetica-Bold', 14)
        canvas.drawString(HEADER_TEXT_X, height - 18 * mm, organization_name)

        canvas.setFont('Helvetica', 8)
        canvas.setFillColor(TEXT_GREY)
        canvas.drawString(HEADER_TEXT_X, height - 25 * mm, Config.SYSTEM_SUBTITLE)

        canvas.setFont('Helvetica', 7)
        canvas.setFillColor(DATE_GREY)
        canvas.drawRightString(width - PAGE_SIDE_MARGIN, height - 18 * mm,
                               format_long_date(metadata.generated_at))
        canvas.drawRightString(width - PAGE_SIDE_MARGIN, height - 25 * mm, Config.GENERATOR_LABEL)

        canvas.setStrokeColor(RULE_GREY)
        canvas.setLineWidth(0.5)
        canvas.line(0, height - HEADER_HEIGHT, width, height - HEADER_HEIGHT)
        canvas.restoreState()

    @staticmethod
    def draw_footer(canvas, page_number, organization_name=None, page_size=None):
        """Rule, organization line on the left, 'Page N' on the right.

        page_number is the caller's running counter; multi-section documents
        pass the document-wide page number.
        """
        width, _ = PageDecorationService._page_size(canvas, page_size)
        organization_name = organization_name or Config.ORGANIZATION_NAME
        footer_y = FOOTER_OFFSET

        canvas.saveState()
        canvas.setStrokeColor(RULE_GREY)
        canvas.setLineWidth(0.5)
        canvas.line(PAGE_SIDE_MARGIN, footer_y + 5 * mm, width - PAGE_SIDE_MARGIN, footer_y + 5 * mm)

        canvas.setFont('Helvetica', 7)
        canvas.setFillColor(TEXT_GREY)
        canvas.drawString(PAGE_SIDE_MARGIN, footer_y, f"{organization_name} - {Config.SYSTEM_SUBTITLE}")

        canvas.setFont('Helvetica-Bold', 7)
        canvas.drawRightString(width - PAGE_SIDE_MARGIN, footer_y, f"Page {page_number}")
        canvas.restoreState()
