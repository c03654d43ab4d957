"""
Report export routes for the E-Class report export service
Each export endpoint takes the already fetched report data as JSON and
answers with the generated file as an attachment download
"""

from flask import Blueprint, request, jsonify, make_response, abort, current_app
from flask_wtf.csrf import generate_csrf

from models.report import ReportMetadata, ReportSection
from services.excel_export_service import ExcelExportService
from services.group_filter_service import GroupFilter
from services.normalizer_service import RowNormalizer
from services.reporting_service import ReportingService
from utils.exceptions import ReportExportError

reports_bp = Blueprint('reports', __name__)

EXPORT_FORMATS = ('excel', 'pdf')

# kind -> (workbook export, document export)
DIRECTORY_EXPORTS = {
    'teachers': (ExcelExportService.export_teacher_details, ReportingService.generate_teacher_details_pdf),
    'students': (ExcelExportService.export_student_details, ReportingService.generate_student_details_pdf),
    'parents': (ExcelExportService.export_parent_details, ReportingService.generate_parent_details_pdf),
    'class-teachers': (ExcelExportService.export_class_teacher_details,
                       ReportingService.generate_class_teacher_details_pdf),
    'subjects': (ExcelExportService.export_subjects, ReportingService.generate_subjects_pdf),
}


def _download(artifact):
    """Wrap a ReportArtifact as an attachment response"""
    response = make_response(artifact.content)
    response.headers['Content-Type'] = artifact.mimetype
    response.headers['Content-Disposition'] = f'attachment; filename={artifact.filename}'
    return response


def _payload():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        abort(make_response(jsonify({'success': False, 'message': 'Request body must be a JSON object'}), 400))
    return payload


def _check_format(fmt):
    if fmt not in EXPORT_FORMATS:
        abort(404)


def _group_names(payload):
    return payload.get('groups') or current_app.config['REPORT_GROUP_NAMES']


def _class_rows(data, group_names, group_filter):
    """Normalize and filter one set of raw class report records"""
    rows, _, _ = RowNormalizer.normalize_payload(data, group_names)
    return GroupFilter.apply(rows, group_filter)


def _group_filter(payload):
    """Filter state from the request, with an optional select / clear step applied"""
    state = payload.get('groupFilter') or {}
    selection = payload.get('select')
    if isinstance(selection, dict) and selection.get('group'):
        state = GroupFilter.select(state, selection['group'], selection.get('subject'))
    clear = payload.get('clear')
    if clear is True:
        state = GroupFilter.clear(state)
    elif isinstance(clear, str) and clear:
        state = GroupFilter.clear(state, clear)
    return state


def _error_response(error):
    return jsonify({'success': False, 'message': str(error)}), 400


@reports_bp.route('/csrf-token')
def csrf_token():
    """Token for the X-CSRFToken header of the export requests"""
    return jsonify({'success': True, 'csrfToken': generate_csrf()})


@reports_bp.route('/class/rows', methods=['POST'])
def class_rows():
    """Normalized, filtered class rows plus the elective options per group.

    'select' ({group, subject}) and 'clear' (a group name, or true for all)
    update the posted groupFilter; the resulting state is returned.
    """
    payload = _payload()
    data = payload.get('data') or payload
    group_names = _group_names(payload)
    group_filter = _group_filter(payload)
    rows, core_subjects, _ = RowNormalizer.normalize_payload(data, group_names)
    rows = GroupFilter.apply(rows, group_filter)
    return jsonify({
        'success': True,
        'rows': [row.to_dict() for row in rows],
        'coreSubjects': [subject.subject_name for subject in core_subjects],
        'groupOptions': GroupFilter.options(data.get('subjects') or [], group_names),
        'groupFilter': group_filter,
        'activeFilters': GroupFilter.describe(group_filter),
    })


@reports_bp.route('/class/<fmt>', methods=['POST'])
def export_class_report(fmt):
    """Class report; a 'sections' list produces one sheet / page-group per term"""
    _check_format(fmt)
    payload = _payload()
    data = payload.get('data') or payload
    subjects = data.get('subjects') or []
    group_names = _group_names(payload)
    group_filter = payload.get('groupFilter') or {}
    include_groups = bool(payload.get('includeGroups', True))
    metadata = ReportMetadata.from_dict(payload.get('metadata'))

    try:
        if payload.get('sections'):
            sections = [
                ReportSection(label=str(section.get('label') or ''),
                              rows=_class_rows({'subjects': subjects, **section}, group_names, group_filter))
                for section in payload['sections'] if isinstance(section, dict)
            ]
            if fmt == 'excel':
                artifact = ExcelExportService.to_spreadsheet_sections(
                    sections, subjects, group_names, metadata, include_groups, group_filter)
            else:
                artifact = ReportingService.to_document_sections(
                    sections, subjects, group_names, metadata, include_groups, group_filter)
        else:
            rows = _class_rows(data, group_names, group_filter)
            if fmt == 'excel':
                artifact = ExcelExportService.to_spreadsheet(
                    rows, subjects, group_names, metadata, include_groups, group_filter)
            else:
                artifact = ReportingService.to_document(
                    rows, subjects, group_names, metadata, include_groups, group_filter)
    except ReportExportError as e:
        return _error_response(e)
    return _download(artifact)


@reports_bp.route('/student-marks/<fmt>', methods=['POST'])
def export_student_marks(fmt):
    _check_format(fmt)
    payload = _payload()
    metadata = ReportMetadata.from_dict(payload.get('metadata'))
    rows = payload.get('rows') or []
    columns = payload.get('columns')
    visibility = payload.get('columnVisibility')
    try:
        if fmt == 'excel':
            artifact = ExcelExportService.export_student_marks(rows, metadata, columns, visibility)
        else:
            artifact = ReportingService.generate_student_marks_pdf(rows, metadata, columns, visibility)
    except ReportExportError as e:
        return _error_response(e)
    return _download(artifact)


@reports_bp.route('/marks-entry/<fmt>', methods=['POST'])
def export_marks_entry_monitoring(fmt):
    """Single term from 'rows', or all terms from 'terms' ([{label, rows}])"""
    _check_format(fmt)
    payload = _payload()
    metadata = ReportMetadata.from_dict(payload.get('metadata'))
    try:
        if payload.get('terms'):
            if fmt == 'excel':
                artifact = ExcelExportService.export_marks_entry_monitoring_all_terms(payload['terms'], metadata)
            else:
                artifact = ReportingService.generate_marks_entry_monitoring_all_terms_pdf(payload['terms'], metadata)
        else:
            rows = payload.get('rows') or []
            if fmt == 'excel':
                artifact = ExcelExportService.export_marks_entry_monitoring(rows, metadata)
            else:
                artifact = ReportingService.generate_marks_entry_monitoring_pdf(rows, metadata)
    except ReportExportError as e:
        return _error_response(e)
    return _download(artifact)


@reports_bp.route('/parent/<fmt>', methods=['POST'])
def export_parent_report(fmt):
    _check_format(fmt)
    payload = _payload()
    metadata = ReportMetadata.from_dict(payload.get('metadata'))
    sections = payload.get('sections') or payload.get('reports') or []
    try:
        if fmt == 'excel':
            artifact = ExcelExportService.export_parent_report(sections, metadata)
        else:
            artifact = ReportingService.generate_parent_report_pdf(sections, metadata)
    except ReportExportError as e:
        return _error_response(e)
    return _download(artifact)


@reports_bp.route('/directory/<kind>/<fmt>', methods=['POST'])
def export_directory(kind, fmt):
    """Teacher, student, parent and class teacher listings and the subject catalogue"""
    _check_format(fmt)
    if kind not in DIRECTORY_EXPORTS:
        abort(404)
    payload = _payload()
    metadata = ReportMetadata.from_dict(payload.get('metadata'))
    records = payload.get('records') or payload.get('data') or []
    to_excel, to_pdf = DIRECTORY_EXPORTS[kind]
    try:
        artifact = to_excel(records, metadata) if fmt == 'excel' else to_pdf(records, metadata)
    except ReportExportError as e:
        return _error_response(e)
    return _download(artifact)


@reports_bp.route('/users/<fmt>', methods=['POST'])
def export_users(fmt):
    """All users; 'mode' is 'summary' (default) or 'profileRows'"""
    _check_format(fmt)
    payload = _payload()
    metadata = ReportMetadata.from_dict(payload.get('metadata'))
    records = payload.get('users') or payload.get('records') or []
    mode = payload.get('mode') or 'summary'
    try:
        if fmt == 'excel':
            artifact = ExcelExportService.export_users(records, metadata, mode)
        else:
            artifact = ReportingService.generate_users_pdf(records, metadata, mode)
    except ReportExportError as e:
        return _error_response(e)
    return _download(artifact)
