"""
Error types raised while reading the document store and building reports
"""

from typing import Optional


class ReportingError(Exception):
    """Base class for reporting errors"""


class NotFoundError(ReportingError):
    """A document or view result could not be found in the store"""

    def __init__(self, message: str, doc_id: Optional[str] = None):
        super().__init__(message)
        self.doc_id = doc_id


class StoreError(ReportingError):
    """Transport or query failure while talking to the store"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedDocumentError(ReportingError):
    """A document is missing its prototype or a required field"""

    def __init__(self, message: str, doc_id: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.doc_id = doc_id
        self.field = field
