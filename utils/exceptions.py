"""
Exceptions raised by the report export engine
"""


class ReportExportError(Exception):
    """Base class for report export failures"""
    pass


class EmptyDatasetError(ReportExportError):
    """Raised before any artifact is built when there are no rows to export"""

    def __init__(self, message="No report data available for export"):
        super().__init__(message)


class DecorationResourceError(ReportExportError):
    """A logo could not be resolved or drawn. Never escapes the decoration layer."""
    pass


class MalformedRecordWarning(UserWarning):
    """A raw student record was missing identity fields and was sentinel-filled"""
    pass
