"""
Report table shapes for the E-Class report export service
Each report type is laid out once as an ExportPlan (headers, cell rows,
titles, summaries, filename parts); the spreadsheet and document
serializers only paint that plan, so the two formats cannot drift apart.
"""

import logging

from models.report import (
    ReportSection, ReportTableShape, TableSection, SummaryBlock, FilenameSpec, ExportPlan
)
from services.group_filter_service import GroupFilter
from services.normalizer_service import RowNormalizer
from utils.exceptions import EmptyDatasetError
from utils.formatting import SENTINEL, format_cell, format_average, get_mark_grade

logger = logging.getLogger(__name__)

NA = 'N/A'

# Class report
CLASS_REPORT_TITLE = 'Class Overall Report'
CLASS_FIXED_HEADERS = ('Admission Number', 'Student', 'Average', 'Position')
CLASS_FIXED_FRACS = (0.11, 0.20, 0.07, 0.07)

# Student marks report
STUDENT_MARKS_TITLE = 'Student Marks Report'
STUDENT_MARKS_COLUMNS = (
    ('admissionNumber', 'Admission No.'),
    ('name', 'Student'),
    ('grade', 'Grade'),
    ('className', 'Class'),
    ('studentMark', 'Mark'),
    ('markGrade', 'Mark Grade'),
    ('isAbsentStudent', 'Absent'),
)
STUDENT_MARKS_FRACS = {
    'admissionNumber': 0.16, 'name': 0.30, 'academicYear': 0.10, 'academicTerm': 0.10,
    'academicMedium': 0.10, 'grade': 0.10, 'className': 0.10, 'subjectName': 0.18,
    'studentMark': 0.09, 'markGrade': 0.11,
}
STUDENT_MARKS_CENTER_KEYS = {'studentMark', 'markGrade'}
# Absence is shown through the mark/grade cells, never as its own column
STUDENT_MARKS_HIDDEN_KEYS = {'isAbsentStudent'}

# Marks entry monitoring
MONITORING_TITLE = 'Marks Entry Monitoring'
MONITORING_HEADERS = (
    'Year', 'Term', 'Staff Id', 'Teacher', 'Email', 'Mobile', 'Medium', 'Grade',
    'Class', 'Subject Code', 'Subject', 'Total Students', 'Marked', 'Pending', 'Status',
)
MONITORING_FRACS = (0.05, 0.05, 0.06, 0.10, 0.12, 0.07, 0.05, 0.05,
                    0.05, 0.06, 0.10, 0.05, 0.05, 0.05, 0.07)

# Parent report
PARENT_REPORT_TITLE = 'Parent Report'
PARENT_REPORT_HEADERS = (
    'Subject', 'Student Mark', 'Grade', 'Overall Class Average Mark',
    'Highest Class Mark', 'Highest Class Grade',
)
PARENT_REPORT_FRACS = (0.28, 0.13, 0.10, 0.19, 0.15, 0.15)


def _label(value):
    value = format_cell(value)
    return NA if value == SENTINEL else str(value)


def _nested(row, key, attr):
    value = row.get(key)
    if isinstance(value, dict):
        return value.get(attr)
    return None


def _as_section(section):
    if isinstance(section, ReportSection):
        return section
    section = section or {}
    return ReportSection(label=str(section.get('label') or section.get('term') or ''),
                         rows=list(section.get('rows') or []))


class ReportTableBuilder:
    """Builds the shared ExportPlan of every report type"""

    # ------------------------------------------------------------------
    # Class report
    # ------------------------------------------------------------------
    @staticmethod
    def class_report_shape(rows, subjects, groups=None, include_groups=True):
        """Fixed identity/summary columns, core subjects, then groups (when enabled)"""
        core_subjects, _ = RowNormalizer.partition_subjects(subjects, groups)
        subject_names = [subject.subject_name for subject in core_subjects]
        group_names = RowNormalizer.group_names(groups) if include_groups else []

        headers = CLASS_FIXED_HEADERS + tuple(subject_names) + tuple(group_names)
        body = []
        for row in rows:
            cells = [
                format_cell(row.admission_number),
                format_cell(row.name),
                format_average(row.average_of_marks),
                format_cell(row.position),
            ]
            cells.extend(format_cell(row.subject_marks.get(name)) for name in subject_names)
            cells.extend(format_cell(row.group_marks.get(name)) for name in group_names)
            body.append(tuple(cells))

        dynamic_count = len(subject_names) + len(group_names)
        remaining = 1.0 - sum(CLASS_FIXED_FRACS)
        share = remaining / dynamic_count if dynamic_count else 0
        return ReportTableShape(
            headers=headers,
            rows=tuple(body),
            col_fracs=CLASS_FIXED_FRACS + (share,) * dynamic_count,
            center_cols=frozenset(range(2, len(headers))),
            index_column=True,
            font_size=7 if len(headers) > 12 else 8,
        )

    @staticmethod
    def class_report_summary(metadata, row_count, subject_count, group_filter=None, term_label=None):
        left = (
            f"Academic Year: {_label(metadata.year_label)}",
            f"Term: {_label(term_label or metadata.term_label)}",
            f"Grade: {_label(metadata.grade_label)}",
            f"Class: {_label(metadata.class_label)}",
        )
        right = (f"Total Students: {row_count}", f"Subjects: {subject_count}")
        right += tuple(GroupFilter.describe(group_filter))
        return SummaryBlock(left=left, right=right)

    @staticmethod
    def plan_class_report(rows, subjects, groups, metadata, include_groups=True, group_filter=None):
        """Single-section class report. Rows are normalized (and already filtered)."""
        rows = list(rows or [])
        if not rows:
            raise EmptyDatasetError("No class report data available for export")
        shape = ReportTableBuilder.class_report_shape(rows, subjects, groups, include_groups)
        subject_count = len(RowNormalizer.partition_subjects(subjects, groups)[0])
        section = TableSection(
            label='Class Report',
            title=metadata.title or CLASS_REPORT_TITLE,
            shape=shape,
            summary=ReportTableBuilder.class_report_summary(metadata, len(rows), subject_count, group_filter),
        )
        return ExportPlan(
            sections=(section,),
            filename=FilenameSpec(metadata.title, 'class-report',
                                  scope_parts=(metadata.year_label, metadata.term_label)),
            landscape=True,
        )

    @staticmethod
    def plan_class_report_sections(sections, subjects, groups, metadata, include_groups=True, group_filter=None):
        """One sheet / page-group per section (e.g. per exam term); empty sections are skipped"""
        non_empty = [s for s in (_as_section(s) for s in sections or []) if s.rows]
        if not non_empty:
            raise EmptyDatasetError("No class report data available for export")
        base_title = metadata.title or CLASS_REPORT_TITLE
        subject_count = len(RowNormalizer.partition_subjects(subjects, groups)[0])
        table_sections = []
        for index, section in enumerate(non_empty):
            label = section.label or f"Term {index + 1}"
            table_sections.append(TableSection(
                label=section.label,
                title=f"{base_title} - {label}",
                shape=ReportTableBuilder.class_report_shape(section.rows, subjects, groups, include_groups),
                summary=ReportTableBuilder.class_report_summary(
                    metadata, len(section.rows), subject_count, group_filter, term_label=label),
            ))
        return ExportPlan(
            sections=tuple(table_sections),
            filename=FilenameSpec(metadata.title, 'class-report',
                                  scope_parts=(metadata.year_label,), suffix_parts=('all-terms',)),
            landscape=True,
            multi_section=True,
            sheet_fallback='Term',
        )

    # ------------------------------------------------------------------
    # Student marks report
    # ------------------------------------------------------------------
    @staticmethod
    def student_mark_value(row):
        if row.get('isAbsentStudent'):
            return SENTINEL
        value = row.get('studentMark')
        if value is None or str(value).strip() == '':
            return SENTINEL
        return value.strip() if isinstance(value, str) else value

    @staticmethod
    def student_mark_grade(row):
        if row.get('isAbsentStudent'):
            return 'Absent'
        grade = row.get('markGrade')
        if grade and grade != SENTINEL:
            return grade
        return get_mark_grade(row.get('studentMark'))

    STUDENT_MARK_SELECTORS = {
        'admissionNumber': lambda row: (_nested(row, 'student', 'employeeNumber')
                                        or row.get('employeeNumber')
                                        or _nested(row, 'student', 'admissionNumber')),
        'name': lambda row: _nested(row, 'student', 'nameWithInitials') or _nested(row, 'student', 'name'),
        'academicYear': lambda row: row.get('academicYear'),
        'academicTerm': lambda row: row.get('academicTerm'),
        'academicMedium': lambda row: row.get('academicMedium'),
        'grade': lambda row: f"Grade {_nested(row, 'grade', 'grade')}" if _nested(row, 'grade', 'grade') else None,
        'className': lambda row: _nested(row, 'class', 'className'),
        'subjectName': lambda row: _nested(row, 'subject', 'subjectName'),
        'isAbsentStudent': lambda row: 'Yes' if row.get('isAbsentStudent') else 'No',
        'studentMark': lambda row: ReportTableBuilder.student_mark_value(row),
        'markGrade': lambda row: ReportTableBuilder.student_mark_grade(row),
    }

    @staticmethod
    def _columns(columns, visibility):
        """Resolve (key, label) pairs honouring the visibility map"""
        resolved = []
        for column in columns or STUDENT_MARKS_COLUMNS:
            if isinstance(column, dict):
                key, label = column.get('key'), column.get('label') or column.get('key')
            else:
                key, label = column
            if key in STUDENT_MARKS_HIDDEN_KEYS:
                continue
            if visibility is not None and not visibility.get(key):
                continue
            resolved.append((key, label))
        return resolved

    @staticmethod
    def plan_student_marks(rows, metadata, columns=None, visibility=None):
        rows = [row for row in (rows or []) if isinstance(row, dict)]
        if not rows:
            raise EmptyDatasetError("No student marks available for export")
        export_columns = ReportTableBuilder._columns(columns, visibility)
        if not export_columns:
            raise EmptyDatasetError("Select at least one column to export")

        body = []
        for row in rows:
            cells = []
            for key, _ in export_columns:
                selector = ReportTableBuilder.STUDENT_MARK_SELECTORS.get(key)
                cells.append(format_cell(selector(row)) if selector else SENTINEL)
            body.append(tuple(cells))

        shape = ReportTableShape(
            headers=tuple(label for _, label in export_columns),
            rows=tuple(body),
            col_fracs=tuple(STUDENT_MARKS_FRACS.get(key, 0.12) for key, _ in export_columns),
            center_cols=frozenset(i for i, (key, _) in enumerate(export_columns)
                                  if key in STUDENT_MARKS_CENTER_KEYS),
        )
        absent_count = sum(1 for row in rows if row.get('isAbsentStudent'))
        summary = SummaryBlock(
            left=(
                f"Subject: {_label(metadata.subject_label)}",
                f"Academic Year: {_label(metadata.year_label)}",
                f"Term: {_label(metadata.term_label)}",
            ),
            right=(
                f"Total Students: {len(rows)}",
                f"Present: {len(rows) - absent_count}",
                f"Absent: {absent_count}",
            ),
        )
        section = TableSection(label='Marks', title=metadata.title or STUDENT_MARKS_TITLE,
                               shape=shape, summary=summary)
        return ExportPlan(
            sections=(section,),
            filename=FilenameSpec(metadata.title, 'student-marks',
                                  scope_parts=(metadata.subject_label, metadata.year_label,
                                               metadata.term_label)),
        )

    # ------------------------------------------------------------------
    # Marks entry monitoring
    # ------------------------------------------------------------------
    @staticmethod
    def monitoring_cells(row, override_term=None):
        term = override_term or row.get('term')
        counts = [row.get(key) if row.get(key) is not None else 0
                  for key in ('totalStudentsForSubject', 'markedStudentsCount', 'pendingStudentsCount')]
        return tuple(format_cell(value) for value in (
            row.get('academicYear'), term, row.get('teacherStaffId'),
            row.get('teacherNameWithInitials'), row.get('teacherEmail'), row.get('teacherMobile'),
            row.get('academicMedium'), row.get('gradeName'), row.get('className'),
            row.get('subjectCode'), row.get('subjectName'), *counts, row.get('status'),
        ))

    @staticmethod
    def monitoring_shape(rows, override_term=None):
        return ReportTableShape(
            headers=MONITORING_HEADERS,
            rows=tuple(ReportTableBuilder.monitoring_cells(row, override_term) for row in rows),
            col_fracs=MONITORING_FRACS,
            center_cols=frozenset({11, 12, 13}),
            font_size=7,
        )

    @staticmethod
    def monitoring_summary(metadata, first_row, term):
        return SummaryBlock(
            left=(
                f"Academic Year: {_label(metadata.year_label or first_row.get('academicYear'))}",
                f"Term: {_label(term)}",
                f"Grade: {_label(metadata.grade_label or first_row.get('gradeName'))}",
            ),
            right=(f"Status Filter: {_label(metadata.status_label or first_row.get('status'))}",),
        )

    @staticmethod
    def plan_marks_entry_monitoring(rows, metadata):
        rows = [row for row in (rows or []) if isinstance(row, dict)]
        if not rows:
            raise EmptyDatasetError("No marks entry monitoring data available for export")
        term = metadata.term_label or rows[0].get('term')
        section = TableSection(
            label=metadata.term_label or 'Report',
            title=metadata.title or MONITORING_TITLE,
            shape=ReportTableBuilder.monitoring_shape(rows, metadata.term_label),
            summary=ReportTableBuilder.monitoring_summary(metadata, rows[0], term),
        )
        year = metadata.year_label or rows[0].get('academicYear')
        return ExportPlan(
            sections=(section,),
            filename=FilenameSpec(metadata.title, 'marks-entry-monitoring', scope_parts=(year, term)),
            landscape=True,
        )

    @staticmethod
    def plan_marks_entry_monitoring_all_terms(term_groups, metadata):
        """One section per term; groups without rows are skipped"""
        sections = [_as_section(group) for group in term_groups or []]
        sections = [s for s in sections if s.rows]
        if not sections:
            raise EmptyDatasetError("No marks entry monitoring data available for export")
        base_title = metadata.title or MONITORING_TITLE
        table_sections = []
        for section in sections:
            table_sections.append(TableSection(
                label=section.label,
                title=f"{base_title} - {section.label}" if section.label else base_title,
                shape=ReportTableBuilder.monitoring_shape(section.rows, section.label),
                summary=ReportTableBuilder.monitoring_summary(metadata, section.rows[0], section.label),
            ))
        year = metadata.year_label or sections[0].rows[0].get('academicYear')
        return ExportPlan(
            sections=tuple(table_sections),
            filename=FilenameSpec(metadata.title, 'marks-entry-monitoring',
                                  scope_parts=(year,), suffix_parts=('all-terms',)),
            landscape=True,
            multi_section=True,
            sheet_fallback='Term',
        )

    # ------------------------------------------------------------------
    # Parent report
    # ------------------------------------------------------------------
    @staticmethod
    def parent_report_shape(subjects):
        body = tuple(
            tuple(format_cell(value) for value in (
                subject.get('subjectName'),
                subject.get('studentMark'),
                subject.get('studentGrade'),
                format_average(subject.get('classAverageMark')),
                subject.get('highestMark'),
                subject.get('highestGrade'),
            ))
            for subject in subjects
        )
        return ReportTableShape(
            headers=PARENT_REPORT_HEADERS,
            rows=body,
            col_fracs=PARENT_REPORT_FRACS,
            center_cols=frozenset(range(1, len(PARENT_REPORT_HEADERS))),
            index_column=False,
        )

    @staticmethod
    def plan_parent_report(sections, metadata):
        """One student's report, one section per exam"""
        sections = [s for s in (sections or []) if isinstance(s, dict) and s.get('subjects')]
        if not sections:
            raise EmptyDatasetError("No parent report data available for export")

        if metadata.student_name:
            student_label = (f"{metadata.student_name} ({metadata.admission_number})"
                             if metadata.admission_number else metadata.student_name)
        else:
            student_label = NA

        base_title = metadata.title or PARENT_REPORT_TITLE
        table_sections = []
        for index, section in enumerate(sections):
            details = section.get('academicDetails') or {}
            overall = section.get('overall') or {}
            exam_label = section.get('examType') or f"Exam {index + 1}"
            summary = SummaryBlock(
                left=(
                    f"Student: {student_label}",
                    f"Year: {_label(details.get('year') or metadata.year_label)}",
                    f"Grade: {_label(details.get('grade') or metadata.grade_label)}",
                    f"Class: {_label(details.get('className') or metadata.class_label)}",
                ),
                right=(
                    f"Exam: {exam_label}",
                    f"Overall Average: {format_average(overall.get('averageOfMarks'))}",
                    f"Position: {format_cell(overall.get('position'))}",
                ),
            )
            table_sections.append(TableSection(
                label=exam_label,
                title=f"{base_title} - {exam_label}",
                shape=ReportTableBuilder.parent_report_shape(section['subjects']),
                summary=summary,
            ))

        suffix = 'all-terms' if len(table_sections) > 1 else 'single-term'
        return ExportPlan(
            sections=tuple(table_sections),
            filename=FilenameSpec(metadata.student_name, 'parent-report',
                                  scope_parts=(metadata.admission_number, metadata.year_label),
                                  suffix_parts=(suffix,)),
            multi_section=True,
            sheet_fallback='Term',
        )
