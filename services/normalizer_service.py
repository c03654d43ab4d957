"""
Row normalizer for the E-Class report export service
Turns raw per-student mark payloads into stable, sentinel-filled report rows
"""

import logging
import warnings

from config import Config
from models.marks import NumericMark, MISSING
from models.report import SubjectDescriptor, NormalizedReportRow
from utils.exceptions import MalformedRecordWarning
from utils.formatting import parse_number

logger = logging.getLogger(__name__)

SENTINEL = Config.REPORT_SENTINEL


def _first_present(record, *keys):
    for key in keys:
        value = record.get(key)
        if value is not None and str(value).strip() != '':
            return value
    return None


class RowNormalizer:
    """Normalizes raw report payloads into NormalizedReportRow lists"""

    @staticmethod
    def group_names(group_names=None):
        return list(group_names) if group_names is not None else list(Config.REPORT_GROUP_NAMES)

    @staticmethod
    def partition_subjects(subject_descriptors, group_names=None):
        """Split descriptors into core subjects and basket subjects per group.

        Core subjects keep their insertion order. Basket subjects whose group
        is not one of the configured groups are dropped.
        """
        groups = RowNormalizer.group_names(group_names)
        core_subjects = []
        basket_subjects_by_group = {name: [] for name in groups}
        for raw in subject_descriptors or []:
            subject = SubjectDescriptor.from_dict(raw)
            if not subject.is_basket_subject:
                core_subjects.append(subject)
            elif subject.group in basket_subjects_by_group:
                basket_subjects_by_group[subject.group].append(subject)
            else:
                logger.debug("Ignoring basket subject %s with unknown group %r",
                             subject.subject_name, subject.group)
        return core_subjects, basket_subjects_by_group

    @staticmethod
    def resolve_mark(entry):
        """Resolve a bare number, numeric text, or {'marks': ...} object to a mark value"""
        if isinstance(entry, dict):
            entry = entry.get('marks')
        elif entry is not None and hasattr(entry, 'marks'):
            entry = getattr(entry, 'marks')
        number = parse_number(entry)
        if number is None:
            return MISSING
        return NumericMark(number)

    @staticmethod
    def resolve_group_subject(entry):
        """Which elective the student took for a group entry, or None"""
        if isinstance(entry, dict):
            subject = entry.get('subject') or entry.get('subjectName')
        else:
            subject = getattr(entry, 'subject', None)
        if subject is None or str(subject).strip() == '':
            return None
        return str(subject)

    @staticmethod
    def resolve_marks_record(record):
        """Pick the marks sub-record of a student.

        Always the first element of the student's marks list; later entries
        are ignored. A dict in place of the list is used as-is.
        """
        marks = record.get('marks') if isinstance(record, dict) else None
        if isinstance(marks, dict):
            return marks
        if isinstance(marks, (list, tuple)) and marks and isinstance(marks[0], dict):
            return marks[0]
        return {}

    @staticmethod
    def _identity(record, index):
        admission_number = _first_present(record, 'admissionNumber', 'employeeNumber', 'admission_number')
        name = _first_present(record, 'nameWithInitials', 'name', 'userName')
        email = _first_present(record, 'email')
        row_id = _first_present(record, 'id', 'userName') or admission_number or f'row-{index + 1}'

        missing = [label for label, value in (('admission number', admission_number), ('name', name))
                   if value is None]
        if missing:
            message = f"Student record {index + 1} is missing {', '.join(missing)}"
            logger.warning(message)
            warnings.warn(message, MalformedRecordWarning, stacklevel=3)

        return {
            'id': str(row_id),
            'admission_number': admission_number if admission_number is not None else SENTINEL,
            'name': name if name is not None else SENTINEL,
            'email': email if email is not None else SENTINEL,
        }

    @staticmethod
    def normalize_record(record, index, core_subjects, groups):
        """Normalize one raw student record"""
        if not isinstance(record, dict):
            record = {}
        marks_record = RowNormalizer.resolve_marks_record(record)

        subject_marks = {}
        for subject in core_subjects:
            subject_marks[subject.subject_name] = RowNormalizer.resolve_mark(
                marks_record.get(subject.subject_name)).cell()

        group_marks = {}
        group_subjects = {}
        for group_name in groups:
            entry = marks_record.get(group_name)
            group_marks[group_name] = RowNormalizer.resolve_mark(entry).cell()
            group_subjects[group_name] = RowNormalizer.resolve_group_subject(entry)

        return NormalizedReportRow(
            average_of_marks=RowNormalizer.resolve_mark(record.get('averageOfMarks')).cell(),
            position=RowNormalizer.resolve_mark(record.get('position')).cell(),
            subject_marks=subject_marks,
            group_marks=group_marks,
            group_subjects=group_subjects,
            **RowNormalizer._identity(record, index),
        )

    @staticmethod
    def normalize(raw_records, subject_descriptors, group_names=None):
        """Normalize raw records into rows, one per record, in input order.

        Every row carries every core subject and every group; absent or
        non-numeric values become the sentinel.
        """
        groups = RowNormalizer.group_names(group_names)
        core_subjects, _ = RowNormalizer.partition_subjects(subject_descriptors, groups)
        records = list(raw_records or [])
        rows = [RowNormalizer.normalize_record(record, index, core_subjects, groups)
                for index, record in enumerate(records)]
        logger.debug("Normalized %d student records against %d core subjects",
                     len(rows), len(core_subjects))
        return rows

    @staticmethod
    def normalize_payload(payload, group_names=None):
        """Normalize a class report API payload.

        Accepts {'data': {'subjects': [...], 'MarkData': [...]}} or the inner
        dict. Returns (rows, core_subjects, basket_subjects_by_group).
        """
        data = (payload or {}).get('data', payload) or {}
        subjects = data.get('subjects') or []
        records = data.get('MarkData') or data.get('records') or []
        groups = RowNormalizer.group_names(group_names)
        core_subjects, basket_subjects_by_group = RowNormalizer.partition_subjects(subjects, groups)
        rows = RowNormalizer.normalize(records, subjects, groups)
        return rows, core_subjects, basket_subjects_by_group
