"""
CSV export of generated headers and processed results
"""

import logging
from pathlib import Path
from typing import Dict, List, Any, Union

import pandas as pd

from .errors import MalformedDocumentError
from .utils import ensure_directory

logger = logging.getLogger(__name__)

def unwrap_headers(doc: Union[Dict[str, Any], List[Dict[str, str]]]) -> List[Dict[str, str]]:
    """Column headers from a saved header document (or a bare header list)"""
    if isinstance(doc, list):
        return doc
    if isinstance(doc, dict) and isinstance(doc.get('column_headers'), list):
        return doc['column_headers']
    raise MalformedDocumentError(
        "Header document has no column_headers list",
        doc_id=doc.get('_id') if isinstance(doc, dict) else None,
        field='column_headers'
    )

def unwrap_results(doc: Union[Dict[str, Any], List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """Processed result rows from a saved result document"""
    if isinstance(doc, list):
        return doc
    if isinstance(doc, dict) and 'processed_results' in doc:
        results = doc['processed_results']
        return results if isinstance(results, list) else [results]
    if isinstance(doc, dict):
        return [{key: value for key, value in doc.items() if key not in ('_id', '_rev')}]
    raise MalformedDocumentError("Result document is neither a dict nor a list")

def resolve_key(result: Dict[str, Any], key: str) -> Any:
    """
    Look up a column key in a processed result

    Flat keys are matched as-is first, then the key is walked as a dotted
    path through nested dicts.

    Args:
        result: Processed result
        key: Column key, e.g. ``s1.latitude``

    Returns:
        The value, or None when the key does not resolve
    """
    if key in result:
        return result[key]

    value = result
    for part in key.split('.'):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value

def build_dataframe(headers: List[Dict[str, str]], results: List[Dict[str, Any]]) -> pd.DataFrame:
    """
    Build the export table, one column per header and one row per result

    Args:
        headers: Ordered column descriptors
        results: Processed results

    Returns:
        DataFrame with the header titles as columns
    """
    keys = [column['key'] for column in headers]
    rows = [[resolve_key(result, key) for key in keys] for result in results]
    return pd.DataFrame(rows, columns=[column['header'] for column in headers])

def generate_csv(
    headers: List[Dict[str, str]],
    results: List[Dict[str, Any]],
    output_path: Union[str, Path]
) -> Path:
    """
    Write headers and results to a CSV file

    Args:
        headers: Ordered column descriptors
        results: Processed results
        output_path: Destination CSV file

    Returns:
        Path to the written file
    """
    output_path = Path(output_path)
    ensure_directory(output_path.parent)

    df = build_dataframe(headers, results)
    df.to_csv(output_path, index=False, encoding='utf-8')

    logger.info(f"Wrote {len(df)} rows x {len(df.columns)} columns to {output_path}")
    return output_path
