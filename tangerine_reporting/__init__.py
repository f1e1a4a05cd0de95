"""
Tangerine Reporting Package
CSV header and result generation for Tangerine assessments
"""

__version__ = "0.1.0"

from .config import load_config
from .utils import setup_logging
from .errors import ReportingError, NotFoundError, StoreError, MalformedDocumentError
from .headers import SubtestCounts, create_column_headers
from .workflow import create_workflow_headers
from .results import process_result, process_assessment_results, process_workflow_result
from .csv_export import generate_csv

__all__ = [
    "load_config",
    "setup_logging",
    "ReportingError",
    "NotFoundError",
    "StoreError",
    "MalformedDocumentError",
    "SubtestCounts",
    "create_column_headers",
    "create_workflow_headers",
    "process_result",
    "process_assessment_results",
    "process_workflow_result",
    "generate_csv"
]
