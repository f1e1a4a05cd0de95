"""
Prefect Flow for Tangerine Reporting
Generates assessment headers, workflow headers and processed assessment and
workflow results for a whole database
"""

from typing import Dict, Any, Optional

from prefect import flow, task, get_run_logger

from tangerine_reporting import batch
from tangerine_reporting.config import load_config, validate_config
from tangerine_reporting.couch_client import create_couch_client
from tangerine_reporting.utils import create_run_timestamp

def _log_summary(logger, summary: Dict[str, Any]) -> None:
    logger.info(f"{summary['batch']}: {summary['successful']}/{summary['requested']} succeeded")
    for doc_id, outcome in summary['outcomes'].items():
        if outcome['status'] != 'success':
            logger.error(f"  {doc_id}: {outcome['error']}")

@task(name="generate_assessment_headers", retries=1)
def generate_assessment_headers(config: Dict[str, Any]) -> Dict[str, Any]:
    """Generate and save headers for every assessment"""
    logger = get_run_logger()
    summary = batch.generate_all_assessment_headers(
        create_couch_client(config, target='base_db'),
        create_couch_client(config, target='result_db')
    )
    _log_summary(logger, summary)
    return summary

@task(name="generate_workflow_headers", retries=1)
def generate_workflow_headers(config: Dict[str, Any]) -> Dict[str, Any]:
    """Generate and save headers for every workflow"""
    logger = get_run_logger()
    summary = batch.generate_all_workflow_headers(
        create_couch_client(config, target='base_db'),
        create_couch_client(config, target='result_db')
    )
    _log_summary(logger, summary)
    return summary

@task(name="process_all_results", retries=1)
def process_all_results(config: Dict[str, Any]) -> Dict[str, Any]:
    """Process and save every result document"""
    logger = get_run_logger()
    summary = batch.process_all_results(
        create_couch_client(config, target='base_db'),
        create_couch_client(config, target='result_db')
    )
    _log_summary(logger, summary)
    return summary

@task(name="process_all_workflow_results", retries=1)
def process_all_workflow_results(config: Dict[str, Any]) -> Dict[str, Any]:
    """Process and save the results of every workflow trip"""
    logger = get_run_logger()
    summary = batch.process_all_workflow_results(
        create_couch_client(config, target='base_db'),
        create_couch_client(config, target='result_db')
    )
    _log_summary(logger, summary)
    return summary

@flow(
    name="tangerine_reporting",
    description="Generate headers and processed results for a Tangerine database",
    log_prints=True
)
def reporting_flow(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Run the header and result batches one after another
    """
    logger = get_run_logger()
    run_timestamp = create_run_timestamp()
    logger.info(f"Starting reporting run {run_timestamp}")

    config = load_config(config_path)
    validate_config(config)

    assessment_summary = generate_assessment_headers(config)
    workflow_summary = generate_workflow_headers(config)
    result_summary = process_all_results(config)
    trip_summary = process_all_workflow_results(config)

    summaries = [assessment_summary, workflow_summary, result_summary, trip_summary]
    results = {
        "run_timestamp": run_timestamp,
        "batches": summaries,
        "success": not any(summary['failed'] for summary in summaries)
    }

    if results["success"]:
        logger.info("✅ Reporting run completed successfully!")
    else:
        logger.error("❌ Reporting run completed with errors")

    return results

if __name__ == "__main__":
    result = reporting_flow()
    print(f"Reporting result: {result['success']}")
