"""
Column header generation for assessments

Walks the ordered subtests of an assessment and produces the ordered list of
``{header, key}`` column descriptors that make up its CSV layout. ``header``
is the CSV column title, ``key`` the dotted path used to pick the value out
of a processed result.

The store passed around here only needs:
- get_document(doc_id)
- get_subtests(assessment_id)
- get_questions_for_subtest(subtest_id)
- get_results_for(assessment_or_curriculum_id)

CouchDBClient provides all four.
"""

import logging
import re
from typing import Dict, List, Any, Tuple

from .errors import MalformedDocumentError, ReportingError
from .utils import suffix_for

logger = logging.getLogger(__name__)

PROTOTYPES = ('location', 'datetime', 'consent', 'id', 'survey', 'grid', 'gps', 'camera')

ASSESSMENT_FIELDS = [
    ('assessment_id', 'assessmentId'),
    ('assessment_name', 'assessmentName'),
    ('enumerator', 'enumerator'),
    ('start_time', 'start_time'),
    ('order_map', 'order_map')
]

DATETIME_FIELDS = ['year', 'month', 'day', 'assess_time']

GPS_FIELDS = ['latitude', 'longitude', 'accuracy', 'altitude', 'altitudeAccuracy', 'heading', 'speed']

GRID_FIELDS = [
    'auto_stop',
    'time_remain',
    'capture_item_at_time',
    'attempted',
    'time_intermediate_captured',
    'time_allowed'
]

class SubtestCounts:
    """Per-prototype occurrence counters plus the shared timestamp counter"""

    def __init__(self):
        self.location_count = 0
        self.datetime_count = 0
        self.id_count = 0
        self.consent_count = 0
        self.gps_count = 0
        self.camera_count = 0
        self.survey_count = 0
        self.grid_count = 0
        self.timestamp_count = 0

    def advance(self, counter: str) -> None:
        """Count one more subtest of a prototype and its timestamp column"""
        setattr(self, counter, getattr(self, counter) + 1)
        self.timestamp_count += 1

    def to_dict(self) -> Dict[str, int]:
        return dict(vars(self))

def column(header: str, key: str) -> Dict[str, str]:
    return {'header': header, 'key': key}

def timestamp_column(owner_id: str, timestamp_count: int) -> Dict[str, str]:
    return column(f"timestamp_{timestamp_count}", f"{owner_id}.timestamp_{timestamp_count}")

def require(doc: Dict[str, Any], field: str) -> Any:
    """Fetch a required field, raising MalformedDocumentError when absent"""
    if not isinstance(doc, dict) or doc.get(field) is None:
        doc_id = doc.get('_id') if isinstance(doc, dict) else None
        raise MalformedDocumentError(
            f"Document {doc_id} is missing required field '{field}'",
            doc_id=doc_id,
            field=field
        )
    return doc[field]

def create_location(doc: Dict[str, Any], subtest_counts: SubtestCounts) -> List[Dict[str, str]]:
    """
    Create headers for a location subtest

    One column per location level, e.g. County, District, School.

    Args:
        doc: Location subtest document
        subtest_counts: Running subtest counts

    Returns:
        Generated location headers
    """
    suffix = suffix_for(subtest_counts.location_count)
    doc_id = require(doc, '_id')
    levels = require(doc, 'levels')

    try:
        headers = [
            column(f"{label}{suffix}", f"{doc_id}.{label.lower()}{suffix}")
            for label in levels
        ]
    except (TypeError, AttributeError) as e:
        raise MalformedDocumentError(
            f"Location subtest {doc_id} has invalid levels: {levels!r}",
            doc_id=doc_id,
            field='levels'
        ) from e

    headers.append(timestamp_column(doc_id, subtest_counts.timestamp_count))
    return headers

def create_datetime(doc: Dict[str, Any], subtest_counts: SubtestCounts) -> List[Dict[str, str]]:
    """Create headers for a datetime subtest"""
    suffix = suffix_for(subtest_counts.datetime_count)
    doc_id = require(doc, '_id')

    headers = [column(f"{field}{suffix}", f"{doc_id}.{field}{suffix}") for field in DATETIME_FIELDS]
    headers.append(timestamp_column(doc_id, subtest_counts.timestamp_count))
    return headers

def create_consent(doc: Dict[str, Any], subtest_counts: SubtestCounts) -> List[Dict[str, str]]:
    """Create headers for a consent subtest"""
    suffix = suffix_for(subtest_counts.consent_count)
    doc_id = require(doc, '_id')

    return [
        column(f"consent{suffix}", f"{doc_id}.consent{suffix}"),
        timestamp_column(doc_id, subtest_counts.timestamp_count)
    ]

def create_id(doc: Dict[str, Any], subtest_counts: SubtestCounts) -> List[Dict[str, str]]:
    """Create headers for an id subtest"""
    suffix = suffix_for(subtest_counts.id_count)
    doc_id = require(doc, '_id')

    return [
        column(f"id{suffix}", f"{doc_id}.id{suffix}"),
        timestamp_column(doc_id, subtest_counts.timestamp_count)
    ]

def create_survey(subtest_id: str, subtest_counts: SubtestCounts, store) -> List[Dict[str, str]]:
    """
    Create headers for a survey subtest

    Questions are ordered by their ``order`` field. A question with at most
    two options gets a single column; otherwise every option gets its own
    column, numbered from 1.

    Args:
        subtest_id: Survey subtest id
        subtest_counts: Running subtest counts
        store: Document store

    Returns:
        Generated survey headers
    """
    suffix = suffix_for(subtest_counts.survey_count)
    questions = store.get_questions_for_subtest(subtest_id)
    logger.debug(f"Survey {subtest_id} has {len(questions)} questions")

    headers = []
    for question in sorted(questions, key=lambda doc: require(doc, 'order')):
        name = require(question, 'name')
        options_len = len(require(question, 'options'))

        if options_len <= 2:
            headers.append(column(f"{name}{suffix}", f"{subtest_id}.{name}{suffix}"))
        else:
            for i in range(1, options_len + 1):
                headers.append(column(f"{name}_{i}{suffix}", f"{subtest_id}.{name}.{i}{suffix}"))

    headers.append(timestamp_column(subtest_id, subtest_counts.timestamp_count))
    return headers

def grid_variable_name(entry: Dict[str, Any]) -> str:
    """Variable name of a grid result entry, derived from its name when unset"""
    data = entry.get('data') or {}
    if data.get('variable_name'):
        return data['variable_name']
    return re.sub(r'\s', '_', require(entry, 'name').lower())

def create_grid(doc: Dict[str, Any], subtest_counts: SubtestCounts, store) -> Tuple[List[Dict[str, str]], int]:
    """
    Create headers for grid subtests

    Grid item sets can change between runs, so the columns are built from
    every grid entry found in the stored results of the assessment rather
    than from the subtest definition. Each entry gets its own occurrence
    suffix and its own timestamp column.

    Args:
        doc: Grid subtest document
        subtest_counts: Running subtest counts
        store: Document store

    Returns:
        Tuple of generated grid headers and the timestamp count to resume from
    """
    count = subtest_counts.grid_count
    timestamp_count = subtest_counts.timestamp_count
    owner_id = doc.get('assessmentId') or doc.get('curriculumId')
    if not owner_id:
        raise MalformedDocumentError(
            f"Grid subtest {doc.get('_id')} has neither assessmentId nor curriculumId",
            doc_id=doc.get('_id'),
            field='assessmentId'
        )

    result_docs = store.get_results_for(owner_id)
    grid_data = [
        entry
        for result in result_docs
        for entry in (result.get('subtestData') or [])
        if entry.get('prototype') == 'grid'
    ]
    logger.debug(f"Found {len(grid_data)} grid entries across {len(result_docs)} results for {owner_id}")

    headers = []
    for entry in grid_data:
        suffix = suffix_for(count)
        subtest_id = require(entry, 'subtestId')
        variable_name = grid_variable_name(entry)
        items = require(require(entry, 'data'), 'items')

        for field in GRID_FIELDS:
            headers.append(column(
                f"{variable_name}_{field}{suffix}",
                f"{subtest_id}.{variable_name}_{field}{suffix}"
            ))

        for item in items:
            label = require(item, 'itemLabel')
            headers.append(column(
                f"{variable_name}_{label}{suffix}",
                f"{subtest_id}.{variable_name}_{label}{suffix}"
            ))

        headers.append(timestamp_column(subtest_id, timestamp_count))
        timestamp_count += 1
        count += 1

    return headers, timestamp_count

def create_gps(doc: Dict[str, Any], subtest_counts: SubtestCounts) -> List[Dict[str, str]]:
    """Create headers for a gps subtest"""
    suffix = suffix_for(subtest_counts.gps_count)
    doc_id = require(doc, '_id')

    headers = [column(f"{field}{suffix}", f"{doc_id}.{field}{suffix}") for field in GPS_FIELDS]
    headers.append(timestamp_column(doc_id, subtest_counts.timestamp_count))
    return headers

def create_camera(doc: Dict[str, Any], subtest_counts: SubtestCounts) -> List[Dict[str, str]]:
    """Create headers for a camera subtest, keyed under its subtestId"""
    suffix = suffix_for(subtest_counts.camera_count)
    subtest_id = require(doc, 'subtestId')
    var_name = require(doc, 'variableName')

    return [
        column(f"{var_name}_photo_captured{suffix}", f"{subtest_id}.{var_name}_photo_captured{suffix}"),
        column(f"{var_name}_photo_url{suffix}", f"{subtest_id}.{var_name}_photo_url{suffix}"),
        timestamp_column(subtest_id, subtest_counts.timestamp_count)
    ]

# prototype -> (generator, counter advanced after it runs)
SIMPLE_GENERATORS = {
    'location': (create_location, 'location_count'),
    'datetime': (create_datetime, 'datetime_count'),
    'consent': (create_consent, 'consent_count'),
    'id': (create_id, 'id_count'),
    'gps': (create_gps, 'gps_count'),
    'camera': (create_camera, 'camera_count')
}

def create_subtest_headers(subtest: Dict[str, Any], subtest_counts: SubtestCounts, store) -> List[Dict[str, str]]:
    """
    Create the headers of one subtest and advance the counts

    Unknown prototypes produce no columns and leave the counts untouched.
    Only the first grid subtest of an assessment generates columns.
    """
    prototype = require(subtest, 'prototype')

    if prototype == 'survey':
        headers = create_survey(require(subtest, '_id'), subtest_counts, store)
        subtest_counts.advance('survey_count')

    elif prototype == 'grid':
        if subtest_counts.grid_count != 0:
            logger.debug(f"Skipping grid subtest {subtest.get('_id')}, grid headers already generated")
            return []
        headers, subtest_counts.timestamp_count = create_grid(subtest, subtest_counts, store)
        subtest_counts.grid_count += 1

    elif prototype in SIMPLE_GENERATORS:
        generator, counter = SIMPLE_GENERATORS[prototype]
        headers = generator(subtest, subtest_counts)
        subtest_counts.advance(counter)

    else:
        logger.debug(f"Skipping subtest {subtest.get('_id')} with unhandled prototype '{prototype}'")
        return []

    return headers

def create_column_headers(doc_id: str, count: int, store) -> List[Dict[str, str]]:
    """
    Create the column headers of an assessment

    Args:
        doc_id: Assessment document id
        count: Occurrence of this assessment in the export, 0 for the first
        store: Document store

    Returns:
        Ordered list of {header, key} column descriptors
    """
    logger.info(f"Generating column headers for {doc_id} (occurrence {count})")
    assessment_suffix = suffix_for(count)
    headers = []

    try:
        item = store.get_document(doc_id)

        if item.get('assessmentId'):
            for header, field in ASSESSMENT_FIELDS:
                headers.append(column(
                    f"{header}{assessment_suffix}",
                    f"{item['assessmentId']}.{field}{assessment_suffix}"
                ))

        subtests = store.get_subtests(doc_id)
        subtest_counts = SubtestCounts()

        for subtest in subtests:
            headers.extend(create_subtest_headers(subtest, subtest_counts, store))

    except ReportingError as e:
        logger.error(f"Failed to generate headers for {doc_id}: {str(e)}")
        raise

    headers.append(column(f"end_time{assessment_suffix}", f"{doc_id}.end_time{assessment_suffix}"))

    logger.info(f"Generated {len(headers)} columns for {doc_id} from {len(subtests)} subtests")
    logger.debug(f"Final subtest counts for {doc_id}: {subtest_counts.to_dict()}")
    return headers
