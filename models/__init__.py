"""
Report data models for the E-Class report export service
"""

from .marks import NumericMark, MissingMark, MISSING
from .logo import LogoBytes, LogoUrl
from .report import (
    SubjectDescriptor, NormalizedReportRow, ReportMetadata, ReportSection,
    SummaryBlock, ReportTableShape, TableSection, ReportArtifact,
    FilenameSpec, ExportPlan,
    XLSX_MIMETYPE, PDF_MIMETYPE,
)

__all__ = [
    'NumericMark', 'MissingMark', 'MISSING', 'LogoBytes', 'LogoUrl',
    'SubjectDescriptor', 'NormalizedReportRow', 'ReportMetadata',
    'ReportSection', 'SummaryBlock', 'ReportTableShape', 'TableSection',
    'ReportArtifact', 'FilenameSpec', 'ExportPlan', 'XLSX_MIMETYPE', 'PDF_MIMETYPE'
]
