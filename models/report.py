"""
Report value objects shared by the normalizer, the filter and both serializers
"""

import os
from dataclasses import dataclass, field, replace
from datetime import datetime
from types import MappingProxyType
from typing import Any, List, Mapping, Optional, Tuple

from utils.formatting import build_filename

XLSX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
PDF_MIMETYPE = 'application/pdf'


def _as_bool(value):
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes')
    return bool(value)


@dataclass(frozen=True)
class SubjectDescriptor:
    """A subject column. Basket subjects belong to exactly one named group."""
    id: Any
    subject_name: str
    subject_medium: Optional[str] = None
    is_basket_subject: bool = False
    group: Optional[str] = None

    @classmethod
    def from_dict(cls, data):
        """Build from the API's camelCase subject payload"""
        if isinstance(data, cls):
            return data
        name = data.get('subjectName') or data.get('subject_name') or ''
        return cls(
            id=data.get('id', name),
            subject_name=str(name),
            subject_medium=data.get('subjectMedium') or data.get('subject_medium'),
            is_basket_subject=_as_bool(data.get('isBasketSubject', data.get('is_basket_subject', False))),
            group=data.get('group'),
        )


@dataclass(frozen=True)
class NormalizedReportRow:
    """One student's sentinel-filled report row. Immutable once produced."""
    id: str
    admission_number: Any
    name: Any
    email: Any
    average_of_marks: Any
    position: Any
    subject_marks: Mapping[str, Any] = field(default_factory=dict)
    group_marks: Mapping[str, Any] = field(default_factory=dict)
    group_subjects: Mapping[str, Optional[str]] = field(default_factory=dict)

    def __post_init__(self):
        # Freeze the maps so neither filter nor serializers can mutate a row
        for name in ('subject_marks', 'group_marks', 'group_subjects'):
            value = getattr(self, name)
            if not isinstance(value, MappingProxyType):
                object.__setattr__(self, name, MappingProxyType(dict(value)))

    def to_dict(self):
        return {
            'id': self.id,
            'admissionNumber': self.admission_number,
            'name': self.name,
            'email': self.email,
            'averageOfMarks': self.average_of_marks,
            'position': self.position,
            'subjectMarks': dict(self.subject_marks),
            'groupMarks': dict(self.group_marks),
            'groupSubjects': dict(self.group_subjects),
        }


@dataclass(frozen=True)
class ReportMetadata:
    """Passed unchanged to both serializers and the page decoration renderer"""
    title: Optional[str] = None
    organization_name: Optional[str] = None
    logo: Any = None
    year_label: Optional[str] = None
    term_label: Optional[str] = None
    grade_label: Optional[str] = None
    class_label: Optional[str] = None
    subject_label: Optional[str] = None
    student_name: Optional[str] = None
    admission_number: Optional[str] = None
    status_label: Optional[str] = None
    generated_at: Optional[datetime] = None

    _FIELD_KEYS = {
        'title': ('title',),
        'organization_name': ('organizationName', 'organization_name'),
        'logo': ('logo', 'logoUrl', 'logoReference'),
        'year_label': ('yearLabel', 'academicYear', 'year_label'),
        'term_label': ('termLabel', 'academicTerm', 'term', 'term_label'),
        'grade_label': ('gradeLabel', 'gradeName', 'grade_label'),
        'class_label': ('classLabel', 'className', 'class_label'),
        'subject_label': ('subjectName', 'subjectLabel', 'subject_label'),
        'student_name': ('studentName', 'student_name'),
        'admission_number': ('admissionNumber', 'admission_number'),
        'status_label': ('status', 'statusLabel', 'status_label'),
    }

    @classmethod
    def from_dict(cls, data):
        """Read the camelCase metadata object posted by the front end"""
        if isinstance(data, cls):
            return data
        data = data or {}
        values = {}
        for attr, keys in cls._FIELD_KEYS.items():
            for key in keys:
                if data.get(key) not in (None, ''):
                    value = data[key]
                    values[attr] = value if attr == 'logo' else str(value)
                    break
        return cls(**values)

    def stamped(self):
        """Copy with generated_at filled in, so every page and the filename agree"""
        if self.generated_at is not None:
            return self
        return replace(self, generated_at=datetime.now())

    def with_values(self, **changes):
        return replace(self, **changes)


@dataclass(frozen=True)
class ReportSection:
    """One independent sub-report (e.g. an exam term)"""
    label: str
    rows: List[Any] = field(default_factory=list)


@dataclass(frozen=True)
class SummaryBlock:
    """Two columns of short 'label: value' lines drawn above the table"""
    left: Tuple[str, ...] = ()
    right: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ReportTableShape:
    """Header list plus row-of-cells list, painted by both serializers.

    col_fracs are the relative document column widths for the data columns;
    index_column asks the document to prepend a '#' row-index column,
    numbered 1..n unless index_labels (one per row, e.g. '2.1') are given.
    """
    headers: Tuple[str, ...]
    rows: Tuple[Tuple[Any, ...], ...]
    col_fracs: Tuple[float, ...] = ()
    center_cols: frozenset = frozenset()
    index_column: bool = True
    font_size: int = 8
    index_labels: Tuple[str, ...] = ()

    @property
    def column_count(self):
        return len(self.headers)


@dataclass(frozen=True)
class TableSection:
    """A shape with the title and summary of one sheet / one page-group"""
    label: str
    title: str
    shape: ReportTableShape
    summary: Optional[SummaryBlock] = None


@dataclass(frozen=True)
class ReportArtifact:
    """A generated spreadsheet or document and the filename to save it under"""
    filename: str
    content: bytes
    mimetype: str

    def save(self, directory='.'):
        """Write the artifact under its derived filename and return the path"""
        os.makedirs(directory, exist_ok=True)
        path = os.path.join(directory, self.filename)
        with open(path, 'wb') as f:
            f.write(self.content)
        return path

    @property
    def size(self):
        return len(self.content)


@dataclass(frozen=True)
class FilenameSpec:
    """Inputs of the filename policy shared by the .xlsx and .pdf exports"""
    title: Optional[str]
    fallback: str
    scope_parts: Tuple[Any, ...] = ()
    suffix_parts: Tuple[Any, ...] = ()

    def render(self, extension, generated_at=None):
        return build_filename(self.title, extension, self.fallback,
                              scope_parts=self.scope_parts,
                              suffix_parts=self.suffix_parts,
                              generated_at=generated_at)


@dataclass(frozen=True)
class ExportPlan:
    """Everything both serializers need for one export: sections and filename.

    multi_section plans start every section after the first on a new page
    and write one sheet per section.
    """
    sections: Tuple[TableSection, ...]
    filename: FilenameSpec
    landscape: bool = False
    multi_section: bool = False
    sheet_fallback: str = 'Report'

    @property
    def row_count(self):
        return sum(len(section.shape.rows) for section in self.sections)
