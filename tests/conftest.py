import pytest

from tangerine_reporting.errors import NotFoundError


class FakeStore:
    """In-memory stand-in for CouchDBClient"""

    def __init__(self, documents=None, subtests=None, questions=None, results=None, collections=None, trips=None):
        self.documents = dict(documents or {})
        self.subtests = dict(subtests or {})
        self.questions = dict(questions or {})
        self.results = dict(results or {})
        self.collections = dict(collections or {})
        self.trips = dict(trips or {})
        self.saved = {}
        self.calls = []

    def get_document(self, doc_id):
        self.calls.append(('get_document', doc_id))
        if doc_id in self.saved:
            return self.saved[doc_id]
        if doc_id not in self.documents:
            raise NotFoundError(f"Document not found: {doc_id}", doc_id=doc_id)
        return self.documents[doc_id]

    def get_subtests(self, assessment_id):
        self.calls.append(('get_subtests', assessment_id))
        if not self.subtests.get(assessment_id):
            raise NotFoundError(f"No subtests found for assessment: {assessment_id}", doc_id=assessment_id)
        return list(self.subtests[assessment_id])

    def get_questions_for_subtest(self, subtest_id):
        self.calls.append(('get_questions_for_subtest', subtest_id))
        return list(self.questions.get(subtest_id, []))

    def get_results_for(self, doc_id):
        self.calls.append(('get_results_for', doc_id))
        return list(self.results.get(doc_id, []))

    def get_trip_results(self, trip_id):
        self.calls.append(('get_trip_results', trip_id))
        return list(self.trips.get(trip_id, []))

    def get_all_assessments(self):
        return list(self.collections.get('assessment', []))

    def get_all_workflows(self):
        return list(self.collections.get('workflow', []))

    def get_all_results(self):
        return list(self.collections.get('result', []))

    def save_doc(self, data, doc_id):
        body = dict(data)
        body['_id'] = doc_id
        self.saved[doc_id] = body
        return {'ok': True, 'id': doc_id, 'rev': '1-test'}

    def save_headers(self, headers, doc_id):
        return self.save_doc({'column_headers': headers}, doc_id)

    def save_result(self, result, doc_id):
        return self.save_doc({'processed_results': result}, doc_id)


@pytest.fixture
def fake_store():
    return FakeStore


@pytest.fixture
def egra_store():
    """An assessment with one subtest of most prototypes and one stored result"""
    documents = {'a1': {'_id': 'a1', 'assessmentId': 'a1', 'name': 'EGRA'}}
    subtests = {
        'a1': [
            {'_id': 'l1', 'prototype': 'location', 'levels': ['County']},
            {'_id': 'd1', 'prototype': 'datetime'},
            {'_id': 's1', 'prototype': 'survey'},
            {'_id': 'g1', 'prototype': 'grid', 'assessmentId': 'a1'},
            {'_id': 'p1', 'prototype': 'gps'},
        ]
    }
    questions = {
        's1': [
            {'name': 'languages', 'order': 2, 'options': ['en', 'sw', 'fr']},
            {'name': 'likes_school', 'order': 1, 'options': ['yes', 'no']},
        ]
    }
    result = {
        '_id': 'r1',
        'assessmentId': 'a1',
        'assessmentName': 'EGRA',
        'enumerator': 'jo',
        'start_time': 1500000000000,
        'order_map': [0, 1, 2, 3, 4],
        'end_time': 1500000900000,
        'subtestData': [
            {'prototype': 'location', 'subtestId': 'l1', 'timestamp': 10,
             'data': {'labels': ['County'], 'location': ['Nairobi']}},
            {'prototype': 'datetime', 'subtestId': 'd1', 'timestamp': 11,
             'data': {'year': '2017', 'month': 'jan', 'day': '1', 'time': '10:00'}},
            {'prototype': 'survey', 'subtestId': 's1', 'timestamp': 12,
             'data': {'likes_school': '1', 'languages': {'en': 'checked', 'sw': 'unchecked', 'fr': 'unchecked'}}},
            {'prototype': 'grid', 'subtestId': 'g1', 'name': 'Letters', 'timestamp': 13,
             'data': {'auto_stop': False, 'time_remain': 12, 'capture_item_at_time': 'b',
                      'attempted': 'b', 'time_intermediate_captured': 30, 'time_allowed': 60,
                      'items': [{'itemLabel': 'a', 'itemResult': 'correct'},
                                {'itemLabel': 'b', 'itemResult': 'incorrect'}]}},
            {'prototype': 'gps', 'subtestId': 'p1', 'timestamp': 14,
             'data': {'latitude': -1.28, 'longitude': 36.82, 'accuracy': 5, 'altitude': 1700,
                      'altitudeAccuracy': 10, 'heading': None, 'speed': 0}},
        ]
    }
    return FakeStore(
        documents=documents,
        subtests=subtests,
        questions=questions,
        results={'a1': [result]},
        collections={'result': [{'id': 'r1', 'doc': result}]}
    )
