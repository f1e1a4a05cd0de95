from tangerine_reporting import batch


def test_assessment_batch_records_failures_and_continues(egra_store, fake_store):
    egra_store.collections['assessment'] = [
        {'id': 'broken', 'doc': {'_id': 'broken', 'assessmentId': 'broken'}},
        {'id': 'a1', 'doc': {'_id': 'a1', 'assessmentId': 'a1'}},
    ]
    result_store = fake_store()

    summary = batch.generate_all_assessment_headers(egra_store, result_store)

    assert summary['requested'] == 2
    assert summary['failed'] == 1
    assert summary['outcomes']['broken']['status'] == 'error'
    assert summary['outcomes']['a1'] == {'status': 'success'}
    assert result_store.saved['a1']['column_headers'][0]['header'] == 'assessment_id'


def test_result_batch_saves_under_result_id(egra_store, fake_store):
    result_store = fake_store()

    summary = batch.process_all_results(egra_store, result_store)

    assert summary['successful'] == 1
    assert result_store.saved['r1']['processed_results']['l1.county'] == 'Nairobi'


def test_workflow_batch(egra_store, fake_store):
    egra_store.documents['w1'] = {'_id': 'w1', 'children': [{'type': 'assessment', 'typesId': 'a1'}]}
    egra_store.collections['workflow'] = [{'id': 'w1', 'doc': egra_store.documents['w1']}]
    result_store = fake_store()

    summary = batch.generate_all_workflow_headers(egra_store, result_store)

    assert summary['failed'] == 0
    assert result_store.saved['w1']['column_headers'][-1] == {'header': 'end_time', 'key': 'a1.end_time'}


def test_workflow_result_batch_saves_trips_once_and_falls_back_to_result_id(egra_store, fake_store):
    trip = [
        {'_id': 'r5', 'assessmentId': 'a1', 'workflowId': 'w1', 'tripId': 't1',
         'enumerator': 'jo', 'start_time': 100, 'subtestData': []},
        {'_id': 'r6', 'assessmentId': 'a1', 'workflowId': 'w1', 'tripId': 't1',
         'enumerator': 'sam', 'start_time': 200, 'subtestData': []},
    ]
    egra_store.trips['t1'] = trip
    egra_store.collections['result'] += [{'id': doc['_id'], 'doc': doc} for doc in trip]
    result_store = fake_store()

    summary = batch.process_all_workflow_results(egra_store, result_store)

    assert summary['requested'] == 3
    assert summary['failed'] == 0
    assert set(result_store.saved) == {'r1', 't1'}
    assert result_store.saved['r1']['processed_results']['l1.county'] == 'Nairobi'
    assert result_store.saved['t1']['processed_results']['a1.enumerator_1'] == 'sam'
    assert egra_store.calls.count(('get_trip_results', 't1')) == 1


def test_workflow_result_batch_records_empty_trips(fake_store):
    doc = {'_id': 'r9', 'assessmentId': 'a1', 'workflowId': 'w1', 'tripId': 't9'}
    base_store = fake_store(collections={'result': [{'id': 'r9', 'doc': doc}]})

    summary = batch.process_all_workflow_results(base_store, fake_store())

    assert summary['failed'] == 1
    assert summary['outcomes']['r9']['status'] == 'error'
