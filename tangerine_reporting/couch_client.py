"""
CouchDB Integration Module
Handles document retrieval, view queries and persistence against a
Tangerine CouchDB database

The reporting core only needs these reads from the store:
- an assessment (or workflow) document by id
- the ordered subtests of an assessment
- the survey questions of a subtest
- every stored result of an assessment or curriculum, or of a workflow trip

Generated headers and processed results are written back to a separate
result database through the same client.
"""

import json
import logging
from typing import Dict, List, Any, Optional
from urllib.parse import quote

import requests

from .config import load_config
from .errors import NotFoundError, StoreError

logger = logging.getLogger(__name__)

DEFAULT_VIEWS = {
    'by_collection': 'byCollection',
    'subtests': 'subtestsByAssessmentId',
    'questions': 'questionsBySubtestId',
    'results': 'resultsByAssessmentId',
    'trip_results': 'resultsByTripId'
}

class CouchDBClient:
    """Client for a single CouchDB database"""

    def __init__(
        self,
        db_url: str,
        design_doc: str = 'ojai',
        views: Optional[Dict[str, str]] = None,
        timeout: int = 30,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize CouchDB client

        Args:
            db_url: Full database url, credentials included
            design_doc: Design document holding the reporting views
            views: Overrides for the view names in DEFAULT_VIEWS
            timeout: Request timeout in seconds
            session: Optional pre-configured requests session
        """
        if not db_url:
            raise ValueError("Missing required CouchDB database url")

        self.db_url = db_url.rstrip('/')
        self.design_doc = design_doc
        self.views = dict(DEFAULT_VIEWS)
        self.views.update(views or {})
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({'Accept': 'application/json'})

    def _doc_url(self, doc_id: str) -> str:
        return f"{self.db_url}/{quote(str(doc_id), safe='')}"

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        """Send a request, mapping transport failures to StoreError"""
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"CouchDB request failed: {method} {url}: {str(e)}")
            raise StoreError(f"CouchDB request failed: {str(e)}") from e

    def _json(self, response: requests.Response, what: str) -> Any:
        """Decode a response body, raising the matching store error"""
        if response.status_code == 404:
            raise NotFoundError(f"{what} not found")

        if not response.ok:
            logger.error(f"CouchDB returned {response.status_code} for {what}: {response.text}")
            raise StoreError(
                f"CouchDB returned {response.status_code} for {what}",
                status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise StoreError(f"Invalid JSON in response for {what}") from e

    def test_connection(self) -> bool:
        """
        Test connection to the database

        Returns:
            True if connection successful, False otherwise
        """
        try:
            info = self._json(self._request('GET', self.db_url), 'database')
            logger.info(f"✅ Connection successful to database: {info.get('db_name', self.db_url)}")
            return True

        except (NotFoundError, StoreError) as e:
            logger.error(f"❌ CouchDB connection failed: {str(e)}")
            return False

    def get_document(self, doc_id: str) -> Dict[str, Any]:
        """
        Retrieve a single document

        Args:
            doc_id: Document id

        Returns:
            The document
        """
        response = self._request('GET', self._doc_url(doc_id))

        try:
            return self._json(response, f"document {doc_id}")
        except NotFoundError:
            raise NotFoundError(f"Document not found: {doc_id}", doc_id=doc_id)

    def query_view(self, view: str, key: Any = None, include_docs: bool = True) -> List[Dict[str, Any]]:
        """
        Query a view of the reporting design document

        Args:
            view: View name
            key: Optional key to filter on
            include_docs: Whether rows should carry their documents

        Returns:
            List of view rows
        """
        url = f"{self.db_url}/_design/{self.design_doc}/_view/{view}"
        params = {'include_docs': 'true' if include_docs else 'false'}
        if key is not None:
            params['key'] = json.dumps(key)

        body = self._json(self._request('GET', url, params=params), f"view {view}")
        rows = body.get('rows', [])
        logger.debug(f"View {view} returned {len(rows)} rows for key {key!r}")
        return rows

    def _view_docs(self, view: str, key: Any) -> List[Dict[str, Any]]:
        return [row['doc'] for row in self.query_view(view, key) if row.get('doc')]

    def get_subtests(self, assessment_id: str) -> List[Dict[str, Any]]:
        """
        Retrieve the subtests of an assessment in their stored order

        Args:
            assessment_id: Assessment document id

        Returns:
            Subtest documents sorted by their ``order`` field
        """
        subtests = self._view_docs(self.views['subtests'], assessment_id)

        if not subtests:
            raise NotFoundError(f"No subtests found for assessment: {assessment_id}", doc_id=assessment_id)

        # sorted() is stable, subtests without an order keep their view position
        return sorted(subtests, key=lambda doc: doc.get('order', 0))

    def get_questions_for_subtest(self, subtest_id: str) -> List[Dict[str, Any]]:
        """Retrieve the survey questions that belong to a subtest"""
        return self._view_docs(self.views['questions'], subtest_id)

    def get_results_for(self, doc_id: str) -> List[Dict[str, Any]]:
        """Retrieve every stored result for an assessment or curriculum id"""
        return self._view_docs(self.views['results'], doc_id)

    def get_trip_results(self, trip_id: str) -> List[Dict[str, Any]]:
        """Retrieve the results collected on one workflow trip"""
        return self._view_docs(self.views['trip_results'], trip_id)

    def get_collection(self, collection: str) -> List[Dict[str, Any]]:
        """Retrieve all rows of a collection (assessment, workflow, result)"""
        rows = self.query_view(self.views['by_collection'], collection)
        logger.info(f"Found {len(rows)} {collection} documents")
        return rows

    def get_all_assessments(self) -> List[Dict[str, Any]]:
        return self.get_collection('assessment')

    def get_all_workflows(self) -> List[Dict[str, Any]]:
        return self.get_collection('workflow')

    def get_all_results(self) -> List[Dict[str, Any]]:
        return self.get_collection('result')

    def save_doc(self, data: Dict[str, Any], doc_id: str) -> Dict[str, Any]:
        """
        Create or update a document

        Args:
            data: Document body
            doc_id: Document id to save under

        Returns:
            CouchDB save response ({ok, id, rev})
        """
        body = dict(data)
        body['_id'] = doc_id
        body.pop('_rev', None)

        try:
            existing = self.get_document(doc_id)
            body['_rev'] = existing['_rev']
            logger.debug(f"Updating existing document {doc_id} at rev {existing['_rev']}")
        except NotFoundError:
            pass

        response = self._json(self._request('PUT', self._doc_url(doc_id), json=body), f"save of {doc_id}")
        logger.info(f"Saved document {doc_id} (rev {response.get('rev')})")
        return response

    def save_headers(self, headers: List[Dict[str, str]], doc_id: str) -> Dict[str, Any]:
        """Save generated column headers under ``doc_id``"""
        return self.save_doc({'column_headers': headers}, doc_id)

    def save_result(self, result: Any, doc_id: str) -> Dict[str, Any]:
        """Save processed results under ``doc_id``"""
        return self.save_doc({'processed_results': result}, doc_id)

def create_couch_client(config: Optional[Dict[str, Any]] = None, target: str = 'base_db',
                        config_path: Optional[str] = None) -> CouchDBClient:
    """
    Factory function to create a CouchDB client

    Args:
        config: Loaded configuration, read from config_path when omitted
        target: Which configured database to connect to (base_db or result_db)
        config_path: Optional path to configuration file

    Returns:
        Configured CouchDB client
    """
    if config is None:
        config = load_config(config_path)

    couch_config = config.get('couchdb', {})
    return CouchDBClient(
        couch_config.get(target),
        design_doc=couch_config.get('design_doc', 'ojai'),
        views=couch_config.get('views'),
        timeout=couch_config.get('timeout', 30)
    )
