"""
OpenSearch client wrapper for profile tables and rate limit counters.
"""

import time
from typing import Any, Dict, List, Optional

import boto3
from opensearchpy import OpenSearch, RequestsHttpConnection
from opensearchpy.exceptions import NotFoundError, OpenSearchException
from requests_aws4auth import AWS4Auth

from .config import OpenSearchConfig
from .logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 1000


class OpenSearchError(Exception):
    """Custom exception for OpenSearch errors."""
    pass


class OpenSearchClient:
    """OpenSearch client with AWS authentication and error handling.

    Every profile table lives in its own index named ``<index_name>_<table>``.
    """

    def __init__(self, config: OpenSearchConfig, client: Optional[OpenSearch] = None):
        """
        Initialize OpenSearch client.

        Args:
            config: OpenSearchConfig instance with connection parameters
            client: Pre-built OpenSearch client (skips AWS authentication)
        """
        self.config = config

        if client is not None:
            self.client = client
            return

        credentials = boto3.Session().get_credentials()
        auth = AWS4Auth(region=config.region, service=config.service, refreshable_credentials=credentials)
        endpoint = config.endpoint
        if '://' in endpoint:
            endpoint = endpoint.split('://', 1)[1]

        self.client = OpenSearch(hosts=[{
            'host': endpoint,
            'port': config.port
        }],
                                 http_auth=auth,
                                 use_ssl=True,
                                 verify_certs=True,
                                 connection_class=RequestsHttpConnection)

        logger.info(f'Initialized OpenSearch client for endpoint: {config.endpoint}')

    def index_for(self, table: str) -> str:
        return f'{self.config.index_name}_{table}'

    def create_index_if_not_exists(self, table: str, properties: Optional[Dict[str, Any]] = None) -> str:
        """
        Create the index backing a table if it doesn't exist.

        Args:
            table: Table name
            properties: Field mappings for the index

        Returns:
            'exists', 'created' or 'failed'
        """
        index_name = self.index_for(table)

        try:
            if self.client.indices.exists(index=index_name):
                logger.debug(f'Index {index_name} already exists')
                return 'exists'

            index_body = {'mappings': {'properties': properties or {}}}
            response = self.client.indices.create(index=index_name, body=index_body)
            logger.info(f'Created index {index_name}')
            if response.get('acknowledged', False):
                logger.info(f'Waiting 15s for index {index_name} sync-up...')
                time.sleep(15)
                return 'created'
            else:
                return 'failed'
        except OpenSearchException as e:
            logger.error(f'Error creating index {index_name}: {e}')
            raise OpenSearchError(f'Failed to create index: {e}')
        except Exception as e:
            logger.error(f'Unexpected error creating index {index_name}: {e}')
            raise OpenSearchError(f'Unexpected error creating index: {e}')

    def list_documents(self, table: str, size: int = DEFAULT_PAGE_SIZE) -> List[Dict[str, Any]]:
        """
        Return every document of a table.

        Args:
            table: Table name
            size: Maximum number of documents

        Returns:
            List of dicts with 'id' and 'document' keys; empty if the index does not exist
        """
        index_name = self.index_for(table)

        try:
            response = self.client.search(index=index_name, body={'size': size, 'query': {'match_all': {}}})
            results = [{'id': hit['_id'], 'document': hit['_source']} for hit in response['hits']['hits']]

            logger.debug(f'Listed {len(results)} documents from {index_name}')
            return results

        except NotFoundError:
            logger.warning(f'Index {index_name} does not exist')
            return []
        except OpenSearchException as e:
            logger.error(f'Error listing documents in {index_name}: {e}')
            raise OpenSearchError(f'Failed to list documents: {e}')
        except Exception as e:
            logger.error(f'Unexpected error listing documents in {index_name}: {e}')
            raise OpenSearchError(f'Unexpected error listing documents: {e}')

    def wildcard_search(self, table: str, field: str, text: str, size: int = 1) -> List[Dict[str, Any]]:
        """Case-insensitive ``*text*`` match on a keyword field.

        Args:
            table: Table name
            field: Keyword field to match
            text: Substring to look for
            size: Number of results to return

        Returns:
            List of dicts with 'id', 'score' and 'document' keys
        """
        index_name = self.index_for(table)
        escaped = text.replace('\\', '\\\\').replace('*', '\\*').replace('?', '\\?')

        try:
            search_body = {
                'size': size,
                'query': {
                    'wildcard': {
                        field: {
                            'value': f'*{escaped}*',
                            'case_insensitive': True
                        }
                    }
                }
            }

            response = self.client.search(index=index_name, body=search_body)

            results = []
            for hit in response['hits']['hits']:
                results.append({'id': hit['_id'], 'score': hit['_score'], 'document': hit['_source']})

            logger.debug(f'Wildcard search on {index_name}.{field} returned {len(results)} results')
            return results

        except OpenSearchException as e:
            logger.error(f'Error performing wildcard search: {e}')
            raise OpenSearchError(f'Wildcard search failed: {e}')
        except Exception as e:
            logger.error(f'Unexpected error in wildcard search: {e}')
            raise OpenSearchError(f'Unexpected error in wildcard search: {e}')

    def get_document(self, table: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """
        Get a document by id.

        Args:
            table: Table name
            doc_id: Document id

        Returns:
            Document source if found, None otherwise
        """
        index_name = self.index_for(table)

        try:
            response = self.client.get(index=index_name, id=doc_id)
            return response.get('_source') if response.get('found', True) else None

        except NotFoundError:
            return None
        except OpenSearchException as e:
            logger.error(f'Error getting document {doc_id} from {index_name}: {e}')
            raise OpenSearchError(f'Failed to get document: {e}')
        except Exception as e:
            logger.error(f'Unexpected error getting document {doc_id}: {e}')
            raise OpenSearchError(f'Unexpected error getting document: {e}')

    def put_document(self, table: str, doc_id: str, document: Dict[str, Any]) -> bool:
        """
        Create or replace a document under a fixed id.

        Args:
            table: Table name
            doc_id: Document id
            document: Document body

        Returns:
            True if indexing was successful, False otherwise
        """
        index_name = self.index_for(table)

        try:
            response = self.client.index(index=index_name, id=doc_id, body=document)

            success = response.get('result') in ['created', 'updated']
            if not success:
                logger.warning(f'Unexpected result indexing document {doc_id}: {response}')
            return success

        except OpenSearchException as e:
            logger.error(f'Error indexing document {doc_id}: {e}')
            raise OpenSearchError(f'Failed to index document: {e}')
        except Exception as e:
            logger.error(f'Unexpected error indexing document {doc_id}: {e}')
            raise OpenSearchError(f'Unexpected error indexing document: {e}')

    def delete_document(self, table: str, doc_id: str) -> bool:
        """
        Delete a document from a table.

        Args:
            table: Table name
            doc_id: Document id to delete

        Returns:
            True if deletion was successful, False if the document was not found
        """
        index_name = self.index_for(table)

        try:
            response = self.client.delete(index=index_name, id=doc_id)
            return response.get('result') == 'deleted'

        except NotFoundError:
            logger.warning(f'Document {doc_id} not found for deletion')
            return False
        except OpenSearchException as e:
            logger.error(f'Error deleting document {doc_id}: {e}')
            raise OpenSearchError(f'Failed to delete document: {e}')
        except Exception as e:
            logger.error(f'Unexpected error deleting document {doc_id}: {e}')
            raise OpenSearchError(f'Unexpected error deleting document: {e}')
