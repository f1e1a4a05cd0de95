import pytest

from tangerine_reporting.errors import MalformedDocumentError, NotFoundError
from tangerine_reporting.workflow import create_workflow_headers


@pytest.fixture
def trip_store(fake_store):
    return fake_store(
        documents={
            'w1': {'_id': 'w1', 'children': [
                {'type': 'assessment', 'typesId': 'a1'},
                {'type': 'message', 'typesId': 'm1'},
                {'type': 'curriculum', 'typesId': 'c1'},
                {'type': 'assessment', 'typesId': 'a1'},
            ]},
            'a1': {'_id': 'a1', 'assessmentId': 'a1'},
            'c1': {'_id': 'c1', 'curriculumId': 'c1'},
        },
        subtests={
            'a1': [{'_id': 'k1', 'prototype': 'consent'}],
            'c1': [{'_id': 'i1', 'prototype': 'id'}],
        },
    )


def test_workflow_concatenates_children_with_occurrence_suffix(trip_store):
    columns = create_workflow_headers('w1', trip_store)

    headers = [column['header'] for column in columns]
    assert headers == [
        'assessment_id', 'assessment_name', 'enumerator', 'start_time', 'order_map',
        'consent', 'timestamp_0', 'end_time',
        'id', 'timestamp_0', 'end_time',
        'assessment_id_1', 'assessment_name_1', 'enumerator_1', 'start_time_1', 'order_map_1',
        'consent', 'timestamp_0', 'end_time_1',
    ]
    assert columns[-1]['key'] == 'a1.end_time_1'
    assert columns[10]['key'] == 'c1.end_time'


def test_workflow_without_children_is_malformed(fake_store):
    store = fake_store(documents={'w1': {'_id': 'w1'}})

    with pytest.raises(MalformedDocumentError):
        create_workflow_headers('w1', store)


def test_missing_child_assessment_propagates(fake_store):
    store = fake_store(documents={'w1': {'_id': 'w1', 'children': [{'type': 'assessment', 'typesId': 'gone'}]}})

    with pytest.raises(NotFoundError):
        create_workflow_headers('w1', store)
