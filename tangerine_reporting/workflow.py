"""
Column header generation for workflows (trips)

A workflow chains several assessments. Its CSV layout is the concatenation
of the layouts of its assessment and curriculum children, with repeated
children told apart by their occurrence suffix.
"""

import logging
from collections import Counter
from typing import Dict, List

from .errors import MalformedDocumentError
from .headers import create_column_headers

logger = logging.getLogger(__name__)

HEADER_CHILD_TYPES = ('assessment', 'curriculum')

def create_workflow_headers(workflow_id: str, store) -> List[Dict[str, str]]:
    """
    Create the column headers of a workflow

    Args:
        workflow_id: Workflow document id
        store: Document store

    Returns:
        Ordered list of {header, key} column descriptors
    """
    workflow = store.get_document(workflow_id)
    children = workflow.get('children')

    if children is None:
        raise MalformedDocumentError(
            f"Workflow {workflow_id} has no children",
            doc_id=workflow_id,
            field='children'
        )

    logger.info(f"Generating headers for workflow {workflow_id} with {len(children)} children")

    headers = []
    occurrences = Counter()
    for child in children:
        if child.get('type') not in HEADER_CHILD_TYPES:
            continue

        types_id = child.get('typesId')
        if not types_id:
            raise MalformedDocumentError(
                f"Workflow {workflow_id} has a {child.get('type')} child without typesId",
                doc_id=workflow_id,
                field='typesId'
            )

        headers.extend(create_column_headers(types_id, occurrences[types_id], store))
        occurrences[types_id] += 1

    return headers
