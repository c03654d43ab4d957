"""
Reporting service for the E-Class report export service
Paints report table shapes as paginated PDF documents
"""

import logging
from io import BytesIO

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import (
    BaseDocTemplate, Frame, NextPageTemplate, PageBreak, PageTemplate, Paragraph, Table, TableStyle
)
from reportlab.platypus.doctemplate import LayoutError
from xml.sax.saxutils import escape as xml_escape

from config import Config
from models.report import ReportArtifact, ReportMetadata, PDF_MIMETYPE
from services.directory_report_service import DirectoryReportBuilder
from services.page_decoration_service import PageDecorationService
from services.report_table_service import ReportTableBuilder
from utils.exceptions import EmptyDatasetError, ReportExportError
from utils.formatting import format_text_cell

logger = logging.getLogger(__name__)

SIDE_MARGIN = 15 * mm
BOTTOM_MARGIN = 25 * mm
TITLE_Y = 50 * mm
SUMMARY_Y = 56 * mm
SUMMARY_LINE_HEIGHT = 5 * mm
TABLE_GAP = 5 * mm
INDEX_COLUMN_FRAC = 0.04
INDEX_HEADER = '#'
MAX_CELL_TEXT = 400
ELLIPSIS = '...'
TITLE_COLOR = colors.Color(6 / 255.0, 66 / 255.0, 115 / 255.0)
SUMMARY_COLOR = colors.Color(60 / 255.0, 60 / 255.0, 60 / 255.0)


class ReportingService:
    """Service for generating PDF reports"""

    @staticmethod
    def _get_paragraph_style(font_size=8):
        """Return a compact cell Paragraph style to enable auto word-wrap in table cells."""
        styles = getSampleStyleSheet()
        return ParagraphStyle(
            'Cell',
            parent=styles['Normal'],
            fontSize=font_size,
            leading=font_size + 2,
            spaceAfter=0,
            spaceBefore=0,
        )

    @staticmethod
    def _get_header_paragraph_style(font_size=8):
        styles = getSampleStyleSheet()
        return ParagraphStyle(
            'HeaderCell',
            parent=styles['Normal'],
            fontName='Helvetica-Bold',
            fontSize=font_size,
            leading=font_size + 2,
            textColor=colors.white,
            alignment=1,
            spaceAfter=0,
            spaceBefore=0,
        )

    @staticmethod
    def _to_paragraph(value, style):
        """Convert any value to a Paragraph so ReportLab wraps text within cell width."""
        if value is None:
            return Paragraph('', style)
        text = str(value)
        # A row must fit on one page; overlong text is cut with an ellipsis
        if len(text) > MAX_CELL_TEXT:
            text = text[:MAX_CELL_TEXT - len(ELLIPSIS)].rstrip() + ELLIPSIS
        # Escape text but preserve explicit line breaks by converting \n -> <br/>
        text = xml_escape(text).replace('\n', '<br/>')
        return Paragraph(text, style)

    @staticmethod
    def _wrap_table_data(rows, font_size=8, no_wrap_cols=None):
        """Map table cells to Paragraphs for word-wrap.
        The header row always gets white bold Paragraphs; body columns in
        no_wrap_cols stay plain strings so TableStyle alignment applies to them.
        """
        if not rows:
            return rows
        no_wrap_set = set(no_wrap_cols or [])
        header_style = ReportingService._get_header_paragraph_style(font_size)
        cell_style = ReportingService._get_paragraph_style(font_size)
        wrapped_rows = [[ReportingService._to_paragraph(c, header_style) for c in rows[0]]]
        for row in rows[1:]:
            wrapped = []
            for idx, cell in enumerate(row):
                if idx in no_wrap_set:
                    wrapped.append('' if cell is None else str(cell))
                else:
                    wrapped.append(ReportingService._to_paragraph(cell, cell_style))
            wrapped_rows.append(wrapped)
        return wrapped_rows

    @staticmethod
    def _calc_colwidths_from_fracs(total_width, fracs):
        safe_fracs = fracs or []
        s = float(sum(safe_fracs)) or 1.0
        normalized = [f / s for f in safe_fracs]
        return [total_width * f for f in normalized]

    @staticmethod
    def _build_table(rows, page_width, col_fracs, *, center_cols=None, header_bg=colors.black, font_size=8):
        """Build a standardized table with consistent styling across PDFs.
        - rows: 2D list with header at index 0
        - page_width: available width for table
        - col_fracs: fractions for each column width
        - center_cols: set of indices to center-align in body (they are not wrapped)
        """
        center_cols = set(center_cols or ())
        wrapped = ReportingService._wrap_table_data(rows, font_size=font_size, no_wrap_cols=center_cols)
        colwidths = ReportingService._calc_colwidths_from_fracs(page_width, col_fracs)
        # repeatRows redraws the header on every page; rows themselves are never split
        tbl = Table(wrapped, repeatRows=1, colWidths=colwidths)
        base_style = [
            ('BOX', (0, 0), (-1, -1), 0.5, colors.grey),
            ('INNERGRID', (0, 0), (-1, -1), 0.25, colors.lightgrey),
            ('BACKGROUND', (0, 0), (-1, 0), header_bg),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('ALIGN', (0, 0), (-1, 0), 'CENTER'),
            ('VALIGN', (0, 0), (-1, 0), 'MIDDLE'),
            # Body paddings and alignment
            ('FONTSIZE', (0, 1), (-1, -1), font_size),
            ('VALIGN', (0, 1), (-1, -1), 'MIDDLE'),
            ('LEFTPADDING', (0, 1), (-1, -1), 3),
            ('RIGHTPADDING', (0, 1), (-1, -1), 3),
            ('TOPPADDING', (0, 1), (-1, -1), 2),
            ('BOTTOMPADDING', (0, 1), (-1, -1), 2),
        ]
        for col_idx in sorted(center_cols):
            base_style.append(('ALIGN', (col_idx, 1), (col_idx, -1), 'CENTER'))
        tbl.setStyle(TableStyle(base_style))
        return tbl

    # ------------------------------------------------------------------
    # Table shape -> document rows
    # ------------------------------------------------------------------
    @staticmethod
    def document_rows(shape):
        """Header and body rows exactly as they are drawn.

        Data cells are the shape's cells as text; shapes with index_column
        get a leading 1-based row number (or the shape's own index labels).
        """
        header = [str(h) for h in shape.headers]
        body = [[format_text_cell(cell) for cell in row] for row in shape.rows]
        if shape.index_column:
            header = [INDEX_HEADER] + header
            labels = list(shape.index_labels) or [str(number) for number in range(1, len(body) + 1)]
            body = [[label] + row for label, row in zip(labels, body)]
        return [header] + body

    @staticmethod
    def build_section_table(shape, width):
        rows = ReportingService.document_rows(shape)
        col_fracs = list(shape.col_fracs) or [1.0] * shape.column_count
        center_cols = set(shape.center_cols)
        if shape.index_column:
            col_fracs = [INDEX_COLUMN_FRAC] + col_fracs
            center_cols = {0} | {c + 1 for c in center_cols}
        return ReportingService._build_table(rows, width, col_fracs,
                                             center_cols=center_cols, font_size=shape.font_size)

    # ------------------------------------------------------------------
    # Page layout
    # ------------------------------------------------------------------
    @staticmethod
    def _table_top(section):
        """Distance from the top edge to where the table may start"""
        if section.summary is None:
            return TITLE_Y + TABLE_GAP
        lines = max(len(section.summary.left), len(section.summary.right), 1)
        return SUMMARY_Y + (lines - 1) * SUMMARY_LINE_HEIGHT + TABLE_GAP

    @staticmethod
    def draw_section_heading(canvas, section, page_size=None):
        """Title line and two-column summary block under the header band"""
        width, height = page_size or canvas._pagesize
        canvas.saveState()
        canvas.setFont('Helvetica-Bold', 11)
        canvas.setFillColor(TITLE_COLOR)
        canvas.drawString(SIDE_MARGIN, height - TITLE_Y, section.title)

        if section.summary is not None:
            canvas.setFont('Helvetica', 9)
            canvas.setFillColor(SUMMARY_COLOR)
            right_x = width / 2.0 + 15 * mm
            for index, line in enumerate(section.summary.left):
                canvas.drawString(SIDE_MARGIN, height - (SUMMARY_Y + index * SUMMARY_LINE_HEIGHT), line)
            for index, line in enumerate(section.summary.right):
                canvas.drawString(right_x, height - (SUMMARY_Y + index * SUMMARY_LINE_HEIGHT), line)
        canvas.restoreState()

    @staticmethod
    def _page_decorator(section, metadata, page_callback):
        """onPage hook for one section's template; runs once per page"""
        def decorate(canvas, doc):
            PageDecorationService.draw_header(canvas, metadata)
            ReportingService.draw_section_heading(canvas, section)
            # doc.page is document-wide, so numbering runs on across sections
            PageDecorationService.draw_footer(canvas, doc.page, metadata.organization_name)
            if page_callback is not None:
                page_callback(canvas, doc, section)
        return decorate

    @staticmethod
    def render_sections(sections, metadata, pagesize=A4, page_callback=None):
        """Render TableSections to PDF bytes, each section after the first on a new page.

        page_callback(canvas, doc, section) is called synchronously once per
        page, after the header, title, summary and footer are drawn.
        """
        sections = [section for section in sections or [] if section.shape.rows]
        if not sections:
            raise EmptyDatasetError()
        metadata = ReportMetadata.from_dict(metadata).stamped()
        # Resolve the logo once; every page then draws the already resolved value
        metadata = metadata.with_values(logo=PageDecorationService.resolve_logo(metadata.logo))

        page_width, page_height = pagesize
        frame_width = page_width - 2 * SIDE_MARGIN
        buffer = BytesIO()
        doc = BaseDocTemplate(
            buffer,
            pagesize=pagesize,
            leftMargin=SIDE_MARGIN,
            rightMargin=SIDE_MARGIN,
            topMargin=TITLE_Y,
            bottomMargin=BOTTOM_MARGIN,
            title=sections[0].title,
            author=metadata.organization_name or Config.ORGANIZATION_NAME,
            creator=Config.GENERATOR_LABEL,
        )

        templates = []
        story = []
        for index, section in enumerate(sections):
            template_id = f'section-{index + 1}'
            table_top = ReportingService._table_top(section)
            frame = Frame(SIDE_MARGIN, BOTTOM_MARGIN, frame_width, page_height - table_top - BOTTOM_MARGIN,
                          id=f'{template_id}-frame',
                          leftPadding=0, rightPadding=0, topPadding=0, bottomPadding=0)
            templates.append(PageTemplate(
                id=template_id,
                frames=[frame],
                pagesize=pagesize,
                onPage=ReportingService._page_decorator(section, metadata, page_callback),
            ))
            if index > 0:
                story.append(NextPageTemplate(template_id))
                story.append(PageBreak())
            story.append(ReportingService.build_section_table(section.shape, frame_width))

        doc.addPageTemplates(templates)
        try:
            doc.build(story)
        except LayoutError as exc:
            logger.error("PDF layout failed for %s: %s", sections[0].title, exc)
            raise ReportExportError(
                "A table row is too large to fit on a page; shorten the longest cell values") from exc
        pdf_bytes = buffer.getvalue()
        buffer.close()
        return pdf_bytes

    @staticmethod
    def export_plan(plan, metadata, page_callback=None):
        """Render an ExportPlan and wrap it with its derived .pdf filename"""
        metadata = ReportMetadata.from_dict(metadata).stamped()
        pagesize = landscape(A4) if plan.landscape else A4
        content = ReportingService.render_sections(plan.sections, metadata, pagesize, page_callback)
        filename = plan.filename.render('pdf', metadata.generated_at)
        logger.info("Generated %s (%d sections, %d rows, %d bytes)",
                    filename, len(plan.sections), plan.row_count, len(content))
        return ReportArtifact(filename=filename, content=content, mimetype=PDF_MIMETYPE)

    # ------------------------------------------------------------------
    # Report types
    # ------------------------------------------------------------------
    @staticmethod
    def to_document(rows, subjects, groups, metadata, include_groups=True, group_filter=None,
                    page_callback=None):
        """Class report PDF. Rows are normalized and already filtered."""
        metadata = ReportMetadata.from_dict(metadata)
        plan = ReportTableBuilder.plan_class_report(rows, subjects, groups, metadata,
                                                    include_groups, group_filter)
        return ReportingService.export_plan(plan, metadata, page_callback)

    @staticmethod
    def to_document_sections(sections, subjects, groups, metadata, include_groups=True,
                             group_filter=None, page_callback=None):
        """Class report PDF with one page-group per section (e.g. per term)"""
        metadata = ReportMetadata.from_dict(metadata)
        plan = ReportTableBuilder.plan_class_report_sections(sections, subjects, groups, metadata,
                                                             include_groups, group_filter)
        return ReportingService.export_plan(plan, metadata, page_callback)

    @staticmethod
    def generate_student_marks_pdf(rows, metadata, columns=None, visibility=None, page_callback=None):
        metadata = ReportMetadata.from_dict(metadata)
        plan = ReportTableBuilder.plan_student_marks(rows, metadata, columns, visibility)
        return ReportingService.export_plan(plan, metadata, page_callback)

    @staticmethod
    def generate_marks_entry_monitoring_pdf(rows, metadata, page_callback=None):
        metadata = ReportMetadata.from_dict(metadata)
        plan = ReportTableBuilder.plan_marks_entry_monitoring(rows, metadata)
        return ReportingService.export_plan(plan, metadata, page_callback)

    @staticmethod
    def generate_marks_entry_monitoring_all_terms_pdf(term_groups, metadata, page_callback=None):
        metadata = ReportMetadata.from_dict(metadata)
        plan = ReportTableBuilder.plan_marks_entry_monitoring_all_terms(term_groups, metadata)
        return ReportingService.export_plan(plan, metadata, page_callback)

    @staticmethod
    def generate_parent_report_pdf(sections, metadata, page_callback=None):
        """Parent report PDF, one page-group per exam"""
        metadata = ReportMetadata.from_dict(metadata)
        plan = ReportTableBuilder.plan_parent_report(sections, metadata)
        return ReportingService.export_plan(plan, metadata, page_callback)

    # ------------------------------------------------------------------
    # Directory listings
    # ------------------------------------------------------------------
    @staticmethod
    def generate_teacher_details_pdf(records, metadata, page_callback=None):
        metadata = ReportMetadata.from_dict(metadata)
        plan = DirectoryReportBuilder.plan_teacher_details(records, metadata)
        return ReportingService.export_plan(plan, metadata, page_callback)

    @staticmethod
    def generate_student_details_pdf(records, metadata, page_callback=None):
        metadata = ReportMetadata.from_dict(metadata)
        plan = DirectoryReportBuilder.plan_student_details(records, metadata)
        return ReportingService.export_plan(plan, metadata, page_callback)

    @staticmethod
    def generate_parent_details_pdf(records, metadata, page_callback=None):
        metadata = ReportMetadata.from_dict(metadata)
        plan = DirectoryReportBuilder.plan_parent_details(records, metadata)
        return ReportingService.export_plan(plan, metadata, page_callback)

    @staticmethod
    def generate_class_teacher_details_pdf(records, metadata, page_callback=None):
        metadata = ReportMetadata.from_dict(metadata)
        plan = DirectoryReportBuilder.plan_class_teacher_details(records, metadata)
        return ReportingService.export_plan(plan, metadata, page_callback)

    @staticmethod
    def generate_users_pdf(records, metadata, mode='summary', page_callback=None):
        metadata = ReportMetadata.from_dict(metadata)
        plan = DirectoryReportBuilder.plan_users(records, metadata, mode)
        return ReportingService.export_plan(plan, metadata, page_callback)

    @staticmethod
    def generate_subjects_pdf(data, metadata, page_callback=None):
        """Subject catalogue, one page-group per initial letter"""
        metadata = ReportMetadata.from_dict(metadata)
        plan = DirectoryReportBuilder.plan_subjects(data, metadata)
        return ReportingService.export_plan(plan, metadata, page_callback)
