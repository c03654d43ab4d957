import os, sys
CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(CURRENT_DIR)
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)
from io import BytesIO
import openpyxl
import sample_data
from config import Config
from models.report import ReportMetadata, ReportSection
from services.excel_export_service import ExcelExportService
from services.group_filter_service import GroupFilter
from services.normalizer_service import RowNormalizer
from services.reporting_service import ReportingService


def headers_from_excel_bytes(xlsx_bytes: bytes):
    wb = openpyxl.load_workbook(filename=BytesIO(xlsx_bytes))
    ws = wb.worksheets[0]
    # The header row is the first row whose first cell is 'Admission Number'
    for row in ws.iter_rows(min_row=1, max_row=20, values_only=True):
        if row and row[0] == 'Admission Number':
            return [value for value in row if value is not None]
    return None


def main(output_dir=None):
    output_dir = output_dir or Config.EXPORT_DIRECTORY
    payload = sample_data.class_report_payload()
    subjects = payload['data']['subjects']
    metadata = ReportMetadata.from_dict(payload['metadata']).stamped()

    rows = RowNormalizer.normalize(payload['data']['MarkData'], subjects)
    group_filter = {'Group 1': 'Biology'}
    filtered = GroupFilter.apply(rows, group_filter)

    artifacts = [
        ExcelExportService.to_spreadsheet(filtered, subjects, None, metadata, group_filter=group_filter),
        ReportingService.to_document(filtered, subjects, None, metadata, group_filter=group_filter),
    ]

    sections = [
        ReportSection(section['label'], RowNormalizer.normalize(section['records'], subjects))
        for section in sample_data.class_report_sections()
    ]
    artifacts.append(ExcelExportService.to_spreadsheet_sections(sections, subjects, None, metadata))
    artifacts.append(ReportingService.to_document_sections(sections, subjects, None, metadata))

    marks_metadata = metadata.with_values(title=None, subject_label='Mathematics')
    artifacts.append(ExcelExportService.export_student_marks(sample_data.student_marks_rows(), marks_metadata))
    artifacts.append(ReportingService.generate_student_marks_pdf(sample_data.student_marks_rows(), marks_metadata))

    monitoring_metadata = metadata.with_values(title=None)
    artifacts.append(ExcelExportService.export_marks_entry_monitoring_all_terms(
        sample_data.marks_entry_terms(), monitoring_metadata))
    artifacts.append(ReportingService.generate_marks_entry_monitoring_all_terms_pdf(
        sample_data.marks_entry_terms(), monitoring_metadata))

    parent_metadata = ReportMetadata.from_dict(sample_data.parent_report_metadata())
    artifacts.append(ExcelExportService.export_parent_report(sample_data.parent_report_sections(), parent_metadata))
    artifacts.append(ReportingService.generate_parent_report_pdf(sample_data.parent_report_sections(), parent_metadata))

    directory_metadata = metadata.with_values(title=None)
    listings = (
        (ExcelExportService.export_teacher_details, ReportingService.generate_teacher_details_pdf,
         sample_data.teacher_records()),
        (ExcelExportService.export_student_details, ReportingService.generate_student_details_pdf,
         sample_data.student_records()),
        (ExcelExportService.export_parent_details, ReportingService.generate_parent_details_pdf,
         sample_data.parent_records()),
        (ExcelExportService.export_class_teacher_details, ReportingService.generate_class_teacher_details_pdf,
         sample_data.class_teacher_records()),
        (ExcelExportService.export_users, ReportingService.generate_users_pdf, sample_data.user_records()),
        (ExcelExportService.export_subjects, ReportingService.generate_subjects_pdf, sample_data.subject_groups()),
    )
    for to_excel, to_pdf, records in listings:
        artifacts.append(to_excel(records, directory_metadata))
        artifacts.append(to_pdf(records, directory_metadata))

    for artifact in artifacts:
        assert artifact.size > 1000, f'{artifact.filename} generation failed or too small'
        path = artifact.save(output_dir)
        print(f'Wrote {path} ({artifact.size} bytes)')

    print('Detected headers:', headers_from_excel_bytes(artifacts[0].content))
    print(f'Rows after filter {GroupFilter.describe(group_filter)}: {len(filtered)} of {len(rows)}')


if __name__ == '__main__':
    main(sys.argv[1] if len(sys.argv) > 1 else None)
