"""
Directory exports for the E-Class report export service
Teacher, student, parent, class teacher and user listings plus the subject
catalogue. Records with several academic profiles are flattened into one
row per profile; the document numbers those rows '2.1', '2.2', ...
"""

import logging

from models.report import ReportTableShape, TableSection, SummaryBlock, FilenameSpec, ExportPlan
from utils.exceptions import EmptyDatasetError, ReportExportError
from utils.formatting import SENTINEL, format_cell, format_date, plain_address, status_label, yes_no

logger = logging.getLogger(__name__)

NA = 'N/A'

PERSON_HEADERS = (
    'ID', '{number}', 'Name With Initials', 'Email', 'Mobile', 'Gender', 'Birthday', 'Address',
    'User Role', 'Access Role', 'Status',
)
PERSON_FRACS = (0.03, 0.06, 0.09, 0.10, 0.06, 0.04, 0.06, 0.10, 0.06, 0.06, 0.04)
PERSON_STATUS_COL = 10

TEACHER_DETAILS_TITLE = 'Teacher Details Report'
TEACHER_PROFILE_HEADERS = ('Academic Year', 'Medium', 'Grade', 'Class', 'Subject', 'Subject Code')
TEACHER_PROFILE_FRACS = (0.05, 0.05, 0.04, 0.04, 0.07, 0.05)

STUDENT_DETAILS_TITLE = 'Student Details Report'
STUDENT_PROFILE_HEADERS = ('Academic Year', 'Medium', 'Grade', 'Class', 'Basket Subjects')
STUDENT_PROFILE_FRACS = (0.05, 0.05, 0.04, 0.04, 0.11)

PARENT_DETAILS_TITLE = 'Parent Details Report'
PARENT_DETAILS_HEADERS = (
    'Parent ID', 'Parent Name', 'Parent Email', 'Parent Mobile', 'Parent Gender', 'Address',
    'Student Name', 'Admission No.', 'Student Mobile', 'Student Gender', 'Academic Year', 'Grade', 'Class',
)
PARENT_DETAILS_FRACS = (0.05, 0.12, 0.12, 0.07, 0.05, 0.12, 0.12, 0.07, 0.07, 0.05, 0.06, 0.05, 0.05)

CLASS_TEACHER_TITLE = 'Class Teacher Details'
# '#' is a data column here, so it is written to the workbook too
CLASS_TEACHER_HEADERS = (
    '#', 'Academic Year', 'Grade', 'Class', 'Teacher Name', 'Staff Id', 'Email', 'Mobile',
    'Gender', 'User Role', 'Access Role', 'Status',
)
CLASS_TEACHER_FRACS = (0.03, 0.07, 0.06, 0.06, 0.14, 0.07, 0.15, 0.08, 0.06, 0.09, 0.09, 0.06)

USERS_TITLE = 'Users Report'
USER_MODES = ('summary', 'profileRows')
USER_COMMON_HEADERS = (
    'Id', 'Staff / Admission Number', 'Name With Initials', 'Full Name', 'Email', 'Mobile Number',
    'User Name', 'Address', 'Birthday', 'Gender', 'User Role', 'Access Role', 'Status',
)
USER_COMMON_FRACS = (0.03, 0.06, 0.08, 0.09, 0.10, 0.06, 0.06, 0.09, 0.06, 0.04, 0.05, 0.05, 0.04)
USER_SUMMARY_HEADERS = ('Profile Years', 'Profile Grades', 'Profile Classes', 'Profile Mediums', 'Profile Subjects')
USER_SUMMARY_FRACS = (0.05, 0.05, 0.05, 0.05, 0.09)
USER_PROFILE_HEADERS = (
    'Student Name', 'Student Email', 'Student Mobile', 'Year', 'Grade', 'Class', 'Subject', 'Medium',
)
USER_PROFILE_FRACS = (0.07, 0.08, 0.05, 0.04, 0.04, 0.04, 0.06, 0.04)

SUBJECTS_TITLE = 'Subject Report'
SUBJECTS_HEADERS = ('Code', 'Medium', 'Subject Name', 'Basket', 'Created')
SUBJECTS_FRACS = (0.16, 0.16, 0.44, 0.10, 0.14)
NO_SUBJECTS = 'No subjects'


def _pick(record, *path):
    """record['a']['b']... or None as soon as a level is missing"""
    value = record
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def _records(records):
    return [record for record in (records or []) if isinstance(record, dict)]


def _dicts(values):
    return [value for value in (values or []) if isinstance(value, dict)]


def _cell(value):
    if isinstance(value, bool):
        return yes_no(value)
    return format_cell(value)


def _join_unique(values):
    """', '-joined distinct non-blank values in first-seen order, or '-'"""
    seen = []
    for value in values:
        text = '' if value is None else str(value).strip()
        if text and text not in seen:
            seen.append(text)
    return ', '.join(seen) if seen else SENTINEL


def _basket_subject_names(profile):
    """Subject names of a profile's basket subjects (mapping or list)"""
    basket = (profile or {}).get('basketSubjects') or {}
    entries = basket.values() if isinstance(basket, dict) else basket
    return [_pick(entry, 'subjectName') for entry in entries]


def _person_cells(record, number_key):
    """Identity columns shared by the teacher and student listings"""
    return tuple(_cell(value) for value in (
        record.get('id'),
        record.get(number_key),
        record.get('nameWithInitials') or record.get('name'),
        record.get('email'),
        record.get('mobile'),
        record.get('gender'),
        format_date(record.get('birthDate')),
        plain_address(record.get('address')),
        record.get('employeeType'),
        _pick(record, 'userType', 'userType'),
        status_label(record.get('availability')),
    ))


def _person_headers(number_label):
    return tuple(header.format(number=number_label) for header in PERSON_HEADERS)


def _listing_plan(metadata, default_title, label, fallback, shape, summary, landscape=True):
    section = TableSection(label=label, title=metadata.title or default_title, shape=shape, summary=summary)
    return ExportPlan(
        sections=(section,),
        filename=FilenameSpec(metadata.title or default_title, fallback),
        landscape=landscape,
        sheet_fallback=label,
    )


def _count_summary(noun, count, row_count=None):
    right = ()
    if row_count is not None and row_count != count:
        right = (f"Rows: {row_count}",)
    return SummaryBlock(left=(f"Total {noun}: {count}",), right=right)


class DirectoryReportBuilder:
    """Builds the ExportPlan of every directory listing"""

    @staticmethod
    def plan_teacher_details(records, metadata):
        """One row per teaching assignment (userProfile entry); teachers without any get one row"""
        records = _records(records)
        if not records:
            raise EmptyDatasetError("No teacher data available for export")
        rows, labels = [], []
        for number, record in enumerate(records, 1):
            base = _person_cells(record, 'employeeNumber')
            profiles = _dicts(record.get('userProfile')) or [{}]
            for profile_number, profile in enumerate(profiles, 1):
                rows.append(base + tuple(_cell(value) for value in (
                    profile.get('academicYear'),
                    profile.get('academicMedium'),
                    _pick(profile, 'grade', 'grade'),
                    _pick(profile, 'class', 'className'),
                    _pick(profile, 'subject', 'subjectName'),
                    _pick(profile, 'subject', 'subjectCode'),
                )))
                labels.append(f"{number}.{profile_number}")
        shape = ReportTableShape(
            headers=_person_headers('Employee No.') + TEACHER_PROFILE_HEADERS,
            rows=tuple(rows),
            col_fracs=PERSON_FRACS + TEACHER_PROFILE_FRACS,
            center_cols=frozenset({PERSON_STATUS_COL}),
            font_size=7,
            index_labels=tuple(labels),
        )
        return _listing_plan(metadata, TEACHER_DETAILS_TITLE, 'Teachers', 'teacher-details', shape,
                             _count_summary('Teachers', len(records), len(rows)))

    @staticmethod
    def plan_student_details(records, metadata):
        """One row per studentProfile entry; basket subjects are joined into one cell"""
        records = _records(records)
        if not records:
            raise EmptyDatasetError("No student data available for export")
        rows, labels = [], []
        for number, record in enumerate(records, 1):
            base = _person_cells(record, 'employeeNumber')
            profiles = _dicts(record.get('studentProfile')) or [{}]
            for profile_number, profile in enumerate(profiles, 1):
                rows.append(base + tuple(_cell(value) for value in (
                    profile.get('academicYear'),
                    profile.get('academicMedium'),
                    _pick(profile, 'grade', 'grade'),
                    _pick(profile, 'class', 'className'),
                    _join_unique(_basket_subject_names(profile)),
                )))
                labels.append(f"{number}.{profile_number}")
        shape = ReportTableShape(
            headers=_person_headers('Admission No.') + STUDENT_PROFILE_HEADERS,
            rows=tuple(rows),
            col_fracs=PERSON_FRACS + STUDENT_PROFILE_FRACS,
            center_cols=frozenset({PERSON_STATUS_COL}),
            font_size=7,
            index_labels=tuple(labels),
        )
        return _listing_plan(metadata, STUDENT_DETAILS_TITLE, 'Students', 'student-details', shape,
                             _count_summary('Students', len(records), len(rows)))

    @staticmethod
    def plan_parent_details(records, metadata):
        """One row per child academic profile; parents without children get one row"""
        records = _records(records)
        if not records:
            raise EmptyDatasetError("No parent data available for export")
        rows, labels = [], []
        for number, record in enumerate(records, 1):
            parent = tuple(_cell(value) for value in (
                record.get('id'),
                record.get('nameWithInitials') or record.get('name'),
                record.get('email'),
                record.get('mobile'),
                record.get('gender'),
                plain_address(record.get('address')),
            ))
            children = _dicts(record.get('parentProfile'))
            if not children:
                rows.append(parent + (SENTINEL,) * 7)
                labels.append(str(number))
                continue
            for child_number, child in enumerate(children, 1):
                child_cells = tuple(_cell(child.get(key)) for key in ('name', 'employeeId', 'mobile', 'gender'))
                for profile_number, profile in enumerate(_dicts(child.get('academicProfiles')) or [{}], 1):
                    rows.append(parent + child_cells + tuple(_cell(value) for value in (
                        profile.get('academicYear'),
                        _pick(profile, 'grade', 'grade'),
                        _pick(profile, 'class', 'className'),
                    )))
                    labels.append(f"{number}.{child_number}.{profile_number}")
        shape = ReportTableShape(
            headers=PARENT_DETAILS_HEADERS,
            rows=tuple(rows),
            col_fracs=PARENT_DETAILS_FRACS,
            font_size=7,
            index_labels=tuple(labels),
        )
        return _listing_plan(metadata, PARENT_DETAILS_TITLE, 'Parents', 'parent-details', shape,
                             _count_summary('Parents', len(records), len(rows)))

    @staticmethod
    def plan_class_teacher_details(records, metadata):
        """One row per class teacher assignment"""
        records = _records(records)
        if not records:
            raise EmptyDatasetError("No class teacher data available for export")
        rows = []
        for number, record in enumerate(records, 1):
            teacher = record.get('teacher') if isinstance(record.get('teacher'), dict) else {}
            grade = _pick(record, 'grade', 'grade')
            rows.append((number,) + tuple(_cell(value) for value in (
                record.get('year'),
                f"Grade {grade}" if format_cell(grade) != SENTINEL else None,
                _pick(record, 'class', 'className'),
                teacher.get('nameWithInitials') or teacher.get('name'),
                teacher.get('employeeNumber'),
                teacher.get('email'),
                teacher.get('mobile'),
                teacher.get('gender'),
                teacher.get('employeeType'),
                _pick(teacher, 'userType', 'userType'),
                status_label(teacher.get('availability')),
            )))
        shape = ReportTableShape(
            headers=CLASS_TEACHER_HEADERS,
            rows=tuple(rows),
            col_fracs=CLASS_TEACHER_FRACS,
            center_cols=frozenset({0, 11}),
            index_column=False,
        )
        return _listing_plan(metadata, CLASS_TEACHER_TITLE, 'Class Teachers', 'class-teacher-details', shape,
                             _count_summary('Class Teachers', len(records)))

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------
    @staticmethod
    def user_cells(record):
        return tuple(_cell(value) for value in (
            record.get('id'),
            record.get('employeeNumber'),
            record.get('nameWithInitials'),
            record.get('name'),
            record.get('email'),
            record.get('mobile'),
            record.get('userName'),
            plain_address(record.get('address')),
            format_date(record.get('birthDate')),
            record.get('gender'),
            record.get('employeeType'),
            _pick(record, 'userType', 'userType'),
            status_label(record.get('availability')),
        ))

    @staticmethod
    def user_profiles(record):
        """Teacher and student profiles plus the academic profiles of a parent's children"""
        profiles = _dicts(record.get('userProfile')) + _dicts(record.get('studentProfile'))
        for child in _dicts(record.get('parentProfile')):
            profiles.extend(_dicts(child.get('academicProfiles')))
        return profiles

    @staticmethod
    def user_profile_summary(record):
        profiles = DirectoryReportBuilder.user_profiles(record)
        subjects = []
        for profile in profiles:
            subjects.extend(_basket_subject_names(profile))
        return (
            _join_unique(profile.get('academicYear') for profile in profiles),
            _join_unique(_pick(profile, 'grade', 'grade') for profile in profiles),
            _join_unique(_pick(profile, 'class', 'className') for profile in profiles),
            _join_unique(profile.get('academicMedium') for profile in profiles),
            _join_unique(subjects),
        )

    @staticmethod
    def user_profile_rows(record):
        """(student name, email, mobile, year, grade, class, subject, medium) per academic row"""
        rows = []

        def academic(profile, subject, student=None):
            student = student or {}
            return tuple(_cell(value) for value in (
                student.get('name'), student.get('email'), student.get('mobile'),
                profile.get('academicYear'), _pick(profile, 'grade', 'grade'),
                _pick(profile, 'class', 'className'), subject, profile.get('academicMedium'),
            ))

        def with_basket(profile, student=None):
            names = [name for name in _basket_subject_names(profile) if name]
            for name in names or [None]:
                rows.append(academic(profile, name, student))

        teacher_profiles = _dicts(record.get('userProfile'))
        student_profiles = _dicts(record.get('studentProfile'))
        children = _dicts(record.get('parentProfile'))
        for profile in teacher_profiles:
            rows.append(academic(profile, _pick(profile, 'subject', 'subjectName')))
        for profile in student_profiles:
            with_basket(profile)
        for child in children:
            for profile in _dicts(child.get('academicProfiles')) or [{}]:
                with_basket(profile, child)
        if not rows:
            rows.append((SENTINEL,) * len(USER_PROFILE_HEADERS))
        return rows

    @staticmethod
    def plan_users(records, metadata, mode='summary'):
        """All users, either one summary row each or one row per academic profile"""
        if mode not in USER_MODES:
            raise ReportExportError(f"Unknown user export mode: {mode}")
        records = _records(records)
        if not records:
            raise EmptyDatasetError("No user data available for export")
        rows = []
        if mode == 'summary':
            headers = USER_COMMON_HEADERS + USER_SUMMARY_HEADERS
            col_fracs = USER_COMMON_FRACS + USER_SUMMARY_FRACS
            for record in records:
                rows.append(DirectoryReportBuilder.user_cells(record)
                            + DirectoryReportBuilder.user_profile_summary(record))
        else:
            headers = USER_COMMON_HEADERS + USER_PROFILE_HEADERS
            col_fracs = USER_COMMON_FRACS + USER_PROFILE_FRACS
            for record in records:
                base = DirectoryReportBuilder.user_cells(record)
                rows.extend(base + academic for academic in DirectoryReportBuilder.user_profile_rows(record))
        logger.debug("Laid out %d users as %d rows (%s)", len(records), len(rows), mode)
        shape = ReportTableShape(
            headers=headers,
            rows=tuple(rows),
            col_fracs=col_fracs,
            center_cols=frozenset({12}),
            font_size=7,
        )
        return _listing_plan(metadata, USERS_TITLE, 'Users', 'users-report', shape,
                             _count_summary('Users', len(records), len(rows)))

    # ------------------------------------------------------------------
    # Subject catalogue
    # ------------------------------------------------------------------
    @staticmethod
    def subject_letter_groups(data):
        """[{letter, subjects}] as given, or built from a flat subject list by first letter"""
        data = list(data or [])
        if any(isinstance(item, dict) and 'letter' in item for item in data):
            return [item for item in data if isinstance(item, dict)]
        groups = {}
        for subject in _dicts(data):
            name = str(subject.get('subjectName') or '').strip()
            letter = name[:1].upper() or '#'
            groups.setdefault(letter, []).append(subject)
        return [{'letter': letter, 'subjects': groups[letter]} for letter in sorted(groups)]

    @staticmethod
    def subject_cells(subject):
        basket = subject.get('isBasketSubject')
        return (
            subject.get('subjectCode') or NA,
            subject.get('subjectMedium') or NA,
            format_cell(subject.get('subjectName')),
            yes_no(basket is True or basket == 1),
            format_date(subject.get('created_at') or subject.get('createdAt')),
        )

    @staticmethod
    def plan_subjects(data, metadata):
        """One section per initial letter; letters marked 'No subjects' are left out"""
        groups = [
            group for group in DirectoryReportBuilder.subject_letter_groups(data)
            if group.get('subjects') != NO_SUBJECTS and _dicts(group.get('subjects'))
        ]
        if not groups:
            raise EmptyDatasetError("No subject data available for export")
        total = sum(len(_dicts(group['subjects'])) for group in groups)
        base_title = metadata.title or SUBJECTS_TITLE
        sections = []
        for group in groups:
            subjects = _dicts(group['subjects'])
            letter = str(group.get('letter') or '').strip() or '#'
            sections.append(TableSection(
                label=f"Letter {letter}",
                title=f"{base_title} - Letter {letter}",
                shape=ReportTableShape(
                    headers=SUBJECTS_HEADERS,
                    rows=tuple(DirectoryReportBuilder.subject_cells(subject) for subject in subjects),
                    col_fracs=SUBJECTS_FRACS,
                    center_cols=frozenset({0, 1, 3, 4}),
                ),
                summary=SummaryBlock(left=(f"Total Subjects: {total}",),
                                     right=(f"Letter {letter}: {len(subjects)}",)),
            ))
        return ExportPlan(
            sections=tuple(sections),
            filename=FilenameSpec(None, 'subjects-report'),
            multi_section=True,
            sheet_fallback='Subjects',
        )
