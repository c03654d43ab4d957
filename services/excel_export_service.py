"""
Excel export service for the E-Class report export service
Paints report table shapes into multi-sheet workbooks
"""

import logging
from decimal import Decimal
from io import BytesIO

import openpyxl
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Font, PatternFill, Alignment
from openpyxl.utils import get_column_letter

from models.report import ReportArtifact, ReportMetadata, XLSX_MIMETYPE
from services.directory_report_service import DirectoryReportBuilder
from services.report_table_service import ReportTableBuilder
from utils.exceptions import EmptyDatasetError
from utils.formatting import sheet_title

logger = logging.getLogger(__name__)

MAX_COLUMN_WIDTH = 50


class ExcelExportService:
    """Service for exporting reports to Excel"""

    @staticmethod
    def create_workbook():
        """Create an empty workbook; sheets are added per section"""
        wb = openpyxl.Workbook()
        wb.remove(wb.active)
        return wb

    @staticmethod
    def style_header_row(ws, row_num, columns):
        """Apply styling to header row"""
        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color="000000", end_color="000000", fill_type="solid")
        header_alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)

        for col_num, header in enumerate(columns, 1):
            cell = ws.cell(row=row_num, column=col_num, value=header)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = header_alignment

    @staticmethod
    def auto_adjust_columns(ws, min_row=1):
        """Auto-adjust column widths from the rows at or below min_row"""
        widths = {}
        for row in ws.iter_rows(min_row=min_row):
            for cell in row:
                if cell.value is None:
                    continue
                length = len(str(cell.value))
                if length > widths.get(cell.column, 0):
                    widths[cell.column] = length
        for column, max_length in widths.items():
            ws.column_dimensions[get_column_letter(column)].width = min(max_length + 2, MAX_COLUMN_WIDTH)

    @staticmethod
    def cell_value(value):
        """Numbers stay numeric; anything else is written as text"""
        if isinstance(value, bool):
            return str(value)
        if isinstance(value, (int, float, Decimal)):
            return value
        if value is None:
            return None
        return ILLEGAL_CHARACTERS_RE.sub('', str(value))

    @staticmethod
    def set_cell(ws, row, column, value):
        cell = ws.cell(row=row, column=column, value=ExcelExportService.cell_value(value))
        if cell.data_type == 'f':
            # Names such as "=A" are data, not formulas
            cell.data_type = 's'
        return cell

    @staticmethod
    def meta_lines(section, metadata):
        """Lines written above the header: organization, title, summary"""
        lines = []
        if metadata.organization_name:
            lines.append(metadata.organization_name)
        if section.title:
            lines.append(section.title)
        if section.summary is not None:
            for block in (section.summary.left, section.summary.right):
                if block:
                    lines.append(' | '.join(block))
        return lines

    @staticmethod
    def write_section(ws, section, metadata, meta_rows=True):
        """Write one TableSection into ws and return the header row number"""
        shape = section.shape
        column_count = max(shape.column_count, 1)
        row_num = 1
        if meta_rows:
            lines = ExcelExportService.meta_lines(section, metadata)
            for index, line in enumerate(lines):
                cell = ExcelExportService.set_cell(ws, row_num, 1, line)
                cell.font = Font(bold=True, size=14 if index == 0 else 11)
                if column_count > 1:
                    ws.merge_cells(start_row=row_num, start_column=1, end_row=row_num, end_column=column_count)
                row_num += 1
            if lines:
                row_num += 1  # blank row before the header

        header_row = row_num
        ExcelExportService.style_header_row(ws, header_row, shape.headers)

        for offset, cells in enumerate(shape.rows, 1):
            for col_num, value in enumerate(cells, 1):
                cell = ExcelExportService.set_cell(ws, header_row + offset, col_num, value)
                if col_num - 1 in shape.center_cols:
                    cell.alignment = Alignment(horizontal="center", vertical="center")

        ws.freeze_panes = ws.cell(row=header_row + 1, column=1)
        ExcelExportService.auto_adjust_columns(ws, min_row=header_row)
        return header_row

    @staticmethod
    def workbook_to_bytes(workbook):
        """Convert workbook to bytes for download"""
        output = BytesIO()
        workbook.save(output)
        output.seek(0)
        return output.getvalue()

    @staticmethod
    def export_sections(sections, metadata, sheet_fallback='Report', meta_rows=True):
        """One sheet per non-empty TableSection, in order. Returns workbook bytes."""
        sections = [section for section in sections or [] if section.shape.rows]
        if not sections:
            raise EmptyDatasetError()
        metadata = ReportMetadata.from_dict(metadata)
        wb = ExcelExportService.create_workbook()
        used_titles = []
        for section in sections:
            title = sheet_title(section.label, sheet_fallback, used_titles)
            used_titles.append(title)
            ws = wb.create_sheet(title=title)
            ExcelExportService.write_section(ws, section, metadata, meta_rows)
        return ExcelExportService.workbook_to_bytes(wb)

    @staticmethod
    def export_table(section, metadata, meta_rows=True):
        """Single-sheet workbook bytes for one TableSection"""
        return ExcelExportService.export_sections([section], metadata, meta_rows=meta_rows)

    @staticmethod
    def export_plan(plan, metadata, meta_rows=True):
        """Serialize an ExportPlan and wrap it with its derived .xlsx filename"""
        metadata = ReportMetadata.from_dict(metadata).stamped()
        content = ExcelExportService.export_sections(plan.sections, metadata,
                                                     sheet_fallback=plan.sheet_fallback,
                                                     meta_rows=meta_rows)
        filename = plan.filename.render('xlsx', metadata.generated_at)
        logger.info("Generated %s (%d sheets, %d rows, %d bytes)",
                    filename, len(plan.sections), plan.row_count, len(content))
        return ReportArtifact(filename=filename, content=content, mimetype=XLSX_MIMETYPE)

    # ------------------------------------------------------------------
    # Report types
    # ------------------------------------------------------------------
    @staticmethod
    def to_spreadsheet(rows, subjects, groups, metadata, include_groups=True, group_filter=None,
                       meta_rows=True):
        """Class report workbook. Rows are normalized and already filtered."""
        metadata = ReportMetadata.from_dict(metadata)
        plan = ReportTableBuilder.plan_class_report(rows, subjects, groups, metadata,
                                                    include_groups, group_filter)
        return ExcelExportService.export_plan(plan, metadata, meta_rows)

    @staticmethod
    def to_spreadsheet_sections(sections, subjects, groups, metadata, include_groups=True,
                                group_filter=None, meta_rows=True):
        """Class report workbook with one sheet per section (e.g. per term)"""
        metadata = ReportMetadata.from_dict(metadata)
        plan = ReportTableBuilder.plan_class_report_sections(sections, subjects, groups, metadata,
                                                             include_groups, group_filter)
        return ExcelExportService.export_plan(plan, metadata, meta_rows)

    @staticmethod
    def export_student_marks(rows, metadata, columns=None, visibility=None):
        metadata = ReportMetadata.from_dict(metadata)
        plan = ReportTableBuilder.plan_student_marks(rows, metadata, columns, visibility)
        return ExcelExportService.export_plan(plan, metadata)

    @staticmethod
    def export_marks_entry_monitoring(rows, metadata):
        metadata = ReportMetadata.from_dict(metadata)
        plan = ReportTableBuilder.plan_marks_entry_monitoring(rows, metadata)
        return ExcelExportService.export_plan(plan, metadata)

    @staticmethod
    def export_marks_entry_monitoring_all_terms(term_groups, metadata):
        metadata = ReportMetadata.from_dict(metadata)
        plan = ReportTableBuilder.plan_marks_entry_monitoring_all_terms(term_groups, metadata)
        return ExcelExportService.export_plan(plan, metadata)

    @staticmethod
    def export_parent_report(sections, metadata):
        """Parent report workbook, one sheet per exam"""
        metadata = ReportMetadata.from_dict(metadata)
        plan = ReportTableBuilder.plan_parent_report(sections, metadata)
        return ExcelExportService.export_plan(plan, metadata)

    # ------------------------------------------------------------------
    # Directory listings
    # ------------------------------------------------------------------
    @staticmethod
    def export_teacher_details(records, metadata):
        metadata = ReportMetadata.from_dict(metadata)
        plan = DirectoryReportBuilder.plan_teacher_details(records, metadata)
        return ExcelExportService.export_plan(plan, metadata)

    @staticmethod
    def export_student_details(records, metadata):
        metadata = ReportMetadata.from_dict(metadata)
        plan = DirectoryReportBuilder.plan_student_details(records, metadata)
        return ExcelExportService.export_plan(plan, metadata)

    @staticmethod
    def export_parent_details(records, metadata):
        metadata = ReportMetadata.from_dict(metadata)
        plan = DirectoryReportBuilder.plan_parent_details(records, metadata)
        return ExcelExportService.export_plan(plan, metadata)

    @staticmethod
    def export_class_teacher_details(records, metadata):
        metadata = ReportMetadata.from_dict(metadata)
        plan = DirectoryReportBuilder.plan_class_teacher_details(records, metadata)
        return ExcelExportService.export_plan(plan, metadata)

    @staticmethod
    def export_users(records, metadata, mode='summary'):
        """Users workbook; mode 'profileRows' writes one row per academic profile"""
        metadata = ReportMetadata.from_dict(metadata)
        plan = DirectoryReportBuilder.plan_users(records, metadata, mode)
        return ExcelExportService.export_plan(plan, metadata)

    @staticmethod
    def export_subjects(data, metadata):
        """Subject catalogue workbook, one sheet per initial letter"""
        metadata = ReportMetadata.from_dict(metadata)
        plan = DirectoryReportBuilder.plan_subjects(data, metadata)
        return ExcelExportService.export_plan(plan, metadata)
