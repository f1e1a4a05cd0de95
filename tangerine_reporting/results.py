"""
Result processing for assessments and workflow trips

Flattens raw Tangerine result documents into dicts keyed by the same dotted
keys that headers.create_column_headers emits, so a header document and a
processed result line up column for column in the CSV export.
"""

import logging
from collections import Counter
from typing import Dict, List, Any

from .errors import NotFoundError, ReportingError
from .headers import (
    ASSESSMENT_FIELDS,
    DATETIME_FIELDS,
    GPS_FIELDS,
    GRID_FIELDS,
    SubtestCounts,
    grid_variable_name,
    require
)
from .utils import suffix_for

logger = logging.getLogger(__name__)

def _location_values(subtest_id: str, data: Dict[str, Any], suffix: str) -> Dict[str, Any]:
    labels = data.get('labels') or []
    locations = data.get('location') or []
    return {
        f"{subtest_id}.{str(label).lower()}{suffix}": locations[i] if i < len(locations) else None
        for i, label in enumerate(labels)
    }

def _datetime_values(subtest_id: str, data: Dict[str, Any], suffix: str) -> Dict[str, Any]:
    values = {}
    for field in DATETIME_FIELDS:
        source = 'time' if field == 'assess_time' else field
        values[f"{subtest_id}.{field}{suffix}"] = data.get(source)
    return values

def _survey_values(subtest_id: str, data: Dict[str, Any], suffix: str) -> Dict[str, Any]:
    values = {}
    for name, answer in data.items():
        if isinstance(answer, dict):
            # multi-option answers map option value -> checked state, in option order
            for i, option_value in enumerate(answer.values(), start=1):
                values[f"{subtest_id}.{name}.{i}{suffix}"] = option_value
        else:
            values[f"{subtest_id}.{name}{suffix}"] = answer
    return values

def _grid_values(entry: Dict[str, Any], subtest_id: str, data: Dict[str, Any], suffix: str) -> Dict[str, Any]:
    variable_name = grid_variable_name(entry)
    values = {
        f"{subtest_id}.{variable_name}_{field}{suffix}": data.get(field)
        for field in GRID_FIELDS
    }
    for item in data.get('items') or []:
        label = require(item, 'itemLabel')
        values[f"{subtest_id}.{variable_name}_{label}{suffix}"] = item.get('itemResult')
    return values

def _gps_values(subtest_id: str, data: Dict[str, Any], suffix: str) -> Dict[str, Any]:
    return {f"{subtest_id}.{field}{suffix}": data.get(field) for field in GPS_FIELDS}

def _camera_values(subtest_id: str, data: Dict[str, Any], suffix: str) -> Dict[str, Any]:
    var_name = require(data, 'variableName')
    url = data.get('url')
    return {
        f"{subtest_id}.{var_name}_photo_captured{suffix}": bool(url or data.get('imageBase64')),
        f"{subtest_id}.{var_name}_photo_url{suffix}": url
    }

# prototype -> counter holding its occurrence suffix
PROTOTYPE_COUNTERS = {
    'location': 'location_count',
    'datetime': 'datetime_count',
    'consent': 'consent_count',
    'id': 'id_count',
    'survey': 'survey_count',
    'grid': 'grid_count',
    'gps': 'gps_count',
    'camera': 'camera_count'
}

def process_subtest_result(entry: Dict[str, Any], subtest_counts: SubtestCounts) -> Dict[str, Any]:
    """
    Flatten one subtestData entry of a result and advance the counts

    Args:
        entry: Entry of a result's subtestData
        subtest_counts: Running subtest counts for this result

    Returns:
        Dict of dotted key -> value, empty for unhandled prototypes
    """
    prototype = require(entry, 'prototype')
    counter = PROTOTYPE_COUNTERS.get(prototype)
    if counter is None:
        logger.debug(f"Skipping result entry with unhandled prototype '{prototype}'")
        return {}

    subtest_id = require(entry, 'subtestId')
    data = entry.get('data') or {}
    suffix = suffix_for(getattr(subtest_counts, counter))

    if prototype == 'location':
        values = _location_values(subtest_id, data, suffix)
    elif prototype == 'datetime':
        values = _datetime_values(subtest_id, data, suffix)
    elif prototype == 'consent':
        values = {f"{subtest_id}.consent{suffix}": data.get('consent')}
    elif prototype == 'id':
        values = {f"{subtest_id}.id{suffix}": data.get('participant_id')}
    elif prototype == 'survey':
        values = _survey_values(subtest_id, data, suffix)
    elif prototype == 'grid':
        values = _grid_values(entry, subtest_id, data, suffix)
    elif prototype == 'gps':
        values = _gps_values(subtest_id, data, suffix)
    else:
        values = _camera_values(subtest_id, data, suffix)

    values[f"{subtest_id}.timestamp_{subtest_counts.timestamp_count}"] = entry.get('timestamp')
    subtest_counts.advance(counter)
    return values

def process_result(result_doc: Dict[str, Any], count: int = 0) -> Dict[str, Any]:
    """
    Flatten a raw result document

    Args:
        result_doc: Raw result document with its subtestData
        count: Occurrence of the assessment in the export, 0 for the first

    Returns:
        Dict of dotted key -> value
    """
    suffix = suffix_for(count)
    assessment_id = result_doc.get('assessmentId') or result_doc.get('curriculumId')
    processed = {}

    if result_doc.get('assessmentId'):
        for _, field in ASSESSMENT_FIELDS:
            processed[f"{assessment_id}.{field}{suffix}"] = result_doc.get(field)

    subtest_counts = SubtestCounts()
    for entry in result_doc.get('subtestData') or []:
        processed.update(process_subtest_result(entry, subtest_counts))

    processed[f"{assessment_id}.end_time{suffix}"] = result_doc.get('end_time') or result_doc.get('updated')
    return processed

def process_assessment_results(assessment_id: str, store, count: int = 0) -> List[Dict[str, Any]]:
    """
    Flatten every stored result of an assessment

    Args:
        assessment_id: Assessment or curriculum id
        store: Document store
        count: Occurrence of the assessment in the export

    Returns:
        One processed result per stored result document
    """
    try:
        result_docs = store.get_results_for(assessment_id)
        processed = [process_result(doc, count) for doc in result_docs]
    except ReportingError as e:
        logger.error(f"Failed to process results for {assessment_id}: {str(e)}")
        raise

    logger.info(f"Processed {len(processed)} results for {assessment_id}")
    return processed

def process_trip_results(result_docs: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Merge the results collected on one workflow trip into a single row

    Each child result is flattened with the occurrence of its assessment
    within the trip, so repeating an assessment yields suffixed keys the way
    workflow headers do.

    Args:
        result_docs: Result documents sharing a tripId

    Returns:
        Dict of dotted key -> value
    """
    occurrences = Counter()
    merged = {}

    for doc in sorted(result_docs, key=lambda doc: doc.get('start_time') or 0):
        owner = doc.get('assessmentId') or doc.get('curriculumId')
        merged.update(process_result(doc, occurrences[owner]))
        occurrences[owner] += 1

    return merged

def process_workflow_result(trip_id: str, store) -> Dict[str, Any]:
    """
    Flatten every result collected on a workflow trip

    Args:
        trip_id: Trip id shared by the child results
        store: Document store

    Returns:
        One merged processed result for the trip
    """
    result_docs = store.get_trip_results(trip_id)
    if not result_docs:
        raise NotFoundError(f"No results found for trip: {trip_id}", doc_id=trip_id)

    processed = process_trip_results(result_docs)
    logger.info(f"Processed {len(result_docs)} results for trip {trip_id}")
    return processed
