"""
Command Line Interface for Tangerine Reporting
Provides commands for generating headers, processing results and exporting CSV
"""

import json
import sys
from pathlib import Path

import click

from tangerine_reporting.config import load_config, validate_config
from tangerine_reporting.utils import setup_logging, daily_log_path
from tangerine_reporting.couch_client import create_couch_client

@click.group()
@click.version_option(package_name='tangerine-reporting')
@click.option('--config', '-c', default=None, help='Path to config file')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx, config, verbose):
    """Tangerine Reporting CLI - CSV exports from Tangerine assessments"""

    log_level = "DEBUG" if verbose else "INFO"
    setup_logging(level=log_level)

    try:
        config_data = load_config(config)
        validate_config(config_data)

        ctx.ensure_object(dict)
        ctx.obj['config'] = config_data
        ctx.obj['verbose'] = verbose

    except Exception as e:
        click.echo(f"❌ Configuration error: {str(e)}", err=True)
        sys.exit(1)

def _base_db(ctx):
    return create_couch_client(ctx.obj['config'], target='base_db')

def _result_db(ctx):
    return create_couch_client(ctx.obj['config'], target='result_db')

def _echo_json(data):
    click.echo(json.dumps(data, indent=2, default=str))

@cli.command()
@click.pass_context
def test_connection(ctx):
    """Test connection to the base and result databases"""
    click.echo("🔌 Testing CouchDB connections...")

    failed = False
    for name, client in [('base_db', _base_db(ctx)), ('result_db', _result_db(ctx))]:
        if client.test_connection():
            click.echo(f"  ✅ {name}: connected")
        else:
            click.echo(f"  ❌ {name}: connection failed")
            failed = True

    if failed:
        sys.exit(1)

@cli.command()
@click.pass_context
def assessments(ctx):
    """List all assessments in the database"""
    try:
        _echo_json(_base_db(ctx).get_all_assessments())
    except Exception as e:
        click.echo(f"❌ Failed to list assessments: {str(e)}", err=True)
        sys.exit(1)

@cli.command()
@click.pass_context
def workflows(ctx):
    """List all workflows in the database"""
    try:
        _echo_json(_base_db(ctx).get_all_workflows())
    except Exception as e:
        click.echo(f"❌ Failed to list workflows: {str(e)}", err=True)
        sys.exit(1)

@cli.command()
@click.pass_context
def results(ctx):
    """List all results in the database"""
    try:
        _echo_json(_base_db(ctx).get_all_results())
    except Exception as e:
        click.echo(f"❌ Failed to list results: {str(e)}", err=True)
        sys.exit(1)

@cli.command('assessment-header')
@click.argument('assessment_id')
@click.pass_context
def assessment_header(ctx, assessment_id):
    """Generate headers for an assessment"""
    from tangerine_reporting.headers import create_column_headers

    try:
        headers = create_column_headers(assessment_id, 0, _base_db(ctx))
        response = _result_db(ctx).save_headers(headers, assessment_id)

        click.echo(f"✅ Generated {len(headers)} columns for {assessment_id}")
        _echo_json(response)

    except Exception as e:
        click.echo(f"❌ Header generation failed: {str(e)}", err=True)
        sys.exit(1)

@cli.command('assessment-result')
@click.argument('assessment_id')
@click.pass_context
def assessment_result(ctx, assessment_id):
    """Process results for an assessment"""
    from tangerine_reporting.results import process_assessment_results

    try:
        processed = process_assessment_results(assessment_id, _base_db(ctx))
        response = _result_db(ctx).save_result(processed, assessment_id)

        click.echo(f"✅ Processed {len(processed)} results for {assessment_id}")
        _echo_json(response)

    except Exception as e:
        click.echo(f"❌ Result processing failed: {str(e)}", err=True)
        sys.exit(1)

@cli.command('workflow-header')
@click.argument('workflow_id')
@click.pass_context
def workflow_header(ctx, workflow_id):
    """Generate headers for a workflow"""
    from tangerine_reporting.workflow import create_workflow_headers

    try:
        headers = create_workflow_headers(workflow_id, _base_db(ctx))
        response = _result_db(ctx).save_headers(headers, workflow_id)

        click.echo(f"✅ Generated {len(headers)} columns for workflow {workflow_id}")
        _echo_json(response)

    except Exception as e:
        click.echo(f"❌ Workflow header generation failed: {str(e)}", err=True)
        sys.exit(1)

@cli.command('workflow-result')
@click.argument('result_id')
@click.pass_context
def workflow_result(ctx, result_id):
    """Process the results of the workflow trip a result belongs to"""
    from tangerine_reporting.results import process_result, process_workflow_result

    try:
        base_db = _base_db(ctx)
        doc = base_db.get_document(result_id)

        if doc.get('workflowId') and doc.get('tripId'):
            save_id = doc['tripId']
            processed = process_workflow_result(save_id, base_db)
        else:
            save_id = result_id
            processed = process_result(doc)

        response = _result_db(ctx).save_result(processed, save_id)

        click.echo(f"✅ Processed {len(processed)} values for {save_id}")
        _echo_json(response)

    except Exception as e:
        click.echo(f"❌ Workflow result processing failed: {str(e)}", err=True)
        sys.exit(1)

@cli.command('create-all')
@click.option('-a', '--assessment', is_flag=True, help='Create all assessment headers')
@click.option('-r', '--result', is_flag=True, help='Create all assessment results')
@click.option('-w', '--workflow', is_flag=True, help='Create all workflow headers')
@click.option('-t', '--workflow-result', is_flag=True, help='Create all workflow results')
@click.pass_context
def create_all(ctx, assessment, result, workflow, workflow_result):
    """
    Create headers or results based on the collection type

    \b
    Examples:
      $ tangerine-reporting create-all -a
      $ tangerine-reporting create-all -r
      $ tangerine-reporting create-all -w
      $ tangerine-reporting create-all -t
    """
    from tangerine_reporting import batch
    from tangerine_reporting.utils import create_run_timestamp, save_run_metadata

    if not (assessment or result or workflow or workflow_result):
        click.echo(click.style('Please select a flag either "-a", "-r", "-t" or "-w" along with your command.', fg='red'), err=True)
        sys.exit(1)

    config = ctx.obj['config']
    run_timestamp = create_run_timestamp()

    log_path = daily_log_path(config)
    setup_logging(level="DEBUG" if ctx.obj.get('verbose') else "INFO", log_file=log_path)
    click.echo(f"📝 Logging to: {log_path}")

    try:
        base_db = _base_db(ctx)
        result_db = _result_db(ctx)

        jobs = []
        if assessment:
            jobs.append(('assessment headers', batch.generate_all_assessment_headers))
        if result:
            jobs.append(('assessment results', batch.process_all_results))
        if workflow:
            jobs.append(('workflow headers', batch.generate_all_workflow_headers))
        if workflow_result:
            jobs.append(('workflow results', batch.process_all_workflow_results))

        summaries = []
        for label, job in jobs:
            summary = job(base_db, result_db)
            summaries.append(summary)

            if summary['failed']:
                click.echo(f"⚠️  {label}: {summary['successful']}/{summary['requested']} succeeded, {summary['failed']} failed")
                for doc_id, outcome in summary['outcomes'].items():
                    if outcome['status'] != 'success':
                        click.echo(f"  ❌ {doc_id}: {outcome['error']}")
            else:
                click.echo(click.style(f"✓ Successfully generated all {label} ({summary['requested']})", fg='green'))

        metadata_dir = Path(config.get('metadata_directory', 'logs/metadata'))
        metadata_path = save_run_metadata(run_timestamp, {'batches': summaries}, metadata_dir)
        click.echo(f"📁 Run metadata: {metadata_path}")

    except Exception as e:
        click.echo(f"❌ Batch generation failed: {str(e)}", err=True)
        sys.exit(1)

    if any(summary['failed'] for summary in summaries):
        sys.exit(1)

@cli.command('generate-csv')
@click.argument('header_id')
@click.argument('result_id')
@click.option('--output', '-o', default=None, help='Output CSV path')
@click.pass_context
def generate_csv_command(ctx, header_id, result_id, output):
    """Create a CSV file from saved headers and results"""
    from tangerine_reporting.csv_export import generate_csv, unwrap_headers, unwrap_results

    config = ctx.obj['config']

    try:
        result_db = _result_db(ctx)
        headers = unwrap_headers(result_db.get_document(header_id))
        rows = unwrap_results(result_db.get_document(result_id))

        if output is None:
            output = Path(config['output']['csv_directory']) / f"{header_id}_{result_id}.csv"

        csv_path = generate_csv(headers, rows, output)
        click.echo(click.style(f"✓ CSV Successfully Generated: {csv_path}", fg='green'))

    except Exception as e:
        click.echo(f"❌ CSV generation failed: {str(e)}", err=True)
        sys.exit(1)

if __name__ == '__main__':
    cli()
