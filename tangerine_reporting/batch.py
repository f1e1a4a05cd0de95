"""
Batch generation of headers and results for a whole database

Documents are processed one at a time; a failure is recorded against its
document and the batch moves on to the next one.
"""

import logging
from typing import Dict, Any, Callable, List

from .errors import ReportingError
from .headers import create_column_headers
from .results import process_result, process_workflow_result
from .workflow import create_workflow_headers

logger = logging.getLogger(__name__)

def _run_batch(name: str, rows: List[Dict[str, Any]], handle: Callable[[Dict[str, Any]], str]) -> Dict[str, Any]:
    """Apply handle to every row, collecting per-document outcomes"""
    outcomes = {}
    failed = 0

    for row in rows:
        doc_id = row.get('id') or (row.get('doc') or {}).get('_id')
        try:
            saved_id = handle(row)
            outcomes[saved_id] = {'status': 'success'}
        except ReportingError as e:
            failed += 1
            outcomes[doc_id] = {'status': 'error', 'error': str(e)}
            logger.error(f"Failed to process {name} {doc_id}: {str(e)}")

    summary = {
        'batch': name,
        'requested': len(rows),
        'successful': len(rows) - failed,
        'failed': failed,
        'outcomes': outcomes
    }
    logger.info(f"{name} batch complete: {summary['successful']}/{summary['requested']} succeeded")
    return summary

def generate_all_assessment_headers(base_store, result_store) -> Dict[str, Any]:
    """Generate and save the headers of every assessment in the base database"""

    def handle(row):
        doc = row.get('doc') or {}
        assessment_id = doc.get('assessmentId') or row['id']
        headers = create_column_headers(assessment_id, 0, base_store)
        result_store.save_headers(headers, assessment_id)
        return assessment_id

    return _run_batch('assessment headers', base_store.get_all_assessments(), handle)

def generate_all_workflow_headers(base_store, result_store) -> Dict[str, Any]:
    """Generate and save the headers of every workflow in the base database"""

    def handle(row):
        workflow_id = row['id']
        headers = create_workflow_headers(workflow_id, base_store)
        result_store.save_headers(headers, workflow_id)
        return workflow_id

    return _run_batch('workflow headers', base_store.get_all_workflows(), handle)

def process_all_results(base_store, result_store) -> Dict[str, Any]:
    """Process and save every result document in the base database"""

    def handle(row):
        doc = row.get('doc') or base_store.get_document(row['id'])
        processed = process_result(doc)
        result_store.save_result(processed, doc['_id'])
        return doc['_id']

    return _run_batch('results', base_store.get_all_results(), handle)

def process_all_workflow_results(base_store, result_store) -> Dict[str, Any]:
    """
    Process and save the results of every workflow trip in the base database

    Results collected outside a workflow are saved under their own id. Trip
    results are merged and saved once per tripId.
    """
    saved_trips = set()

    def handle(row):
        doc = row.get('doc') or base_store.get_document(row['id'])
        if not (doc.get('workflowId') and doc.get('tripId')):
            result_store.save_result(process_result(doc), doc['_id'])
            return doc['_id']

        trip_id = doc['tripId']
        if trip_id not in saved_trips:
            result_store.save_result(process_workflow_result(trip_id, base_store), trip_id)
            saved_trips.add(trip_id)
        return trip_id

    return _run_batch('workflow results', base_store.get_all_results(), handle)
