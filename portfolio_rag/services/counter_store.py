"""
Persistent string-keyed blob storage backing the rate limiter.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from ..utils.config import OpenSearchConfig
from ..utils.logging_config import get_logger
from ..utils.opensearch_client import OpenSearchClient, OpenSearchError

logger = get_logger(__name__)

COUNTER_TABLE = 'rate_limit'


class CounterStoreError(Exception):
    """Custom exception for counter store errors."""
    pass


class CounterStore(ABC):
    """Get/set of string values by key. Missing keys read as None."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    @abstractmethod
    def keys(self) -> List[str]:
        pass


class InMemoryCounterStore(CounterStore):
    """Process-local counter store."""

    def __init__(self):
        self._values: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._values)


class OpenSearchCounterStore(CounterStore):
    """Counter blobs stored as one OpenSearch document per key."""

    def __init__(self, config: OpenSearchConfig, client: Optional[OpenSearchClient] = None):
        self.opensearch = client or OpenSearchClient(config)

        try:
            self.opensearch.create_index_if_not_exists(COUNTER_TABLE, {'key': {'type': 'keyword'}, 'value': {'type': 'text'}})
        except OpenSearchError as e:
            logger.warning(f'Failed to create counter index: {e}')

        logger.info('Initialized OpenSearchCounterStore')

    def get(self, key: str) -> Optional[str]:
        try:
            document = self.opensearch.get_document(COUNTER_TABLE, key)
        except OpenSearchError as e:
            raise CounterStoreError(f'Failed to read counter {key}: {e}')
        return document.get('value') if document else None

    def set(self, key: str, value: str) -> None:
        try:
            self.opensearch.put_document(COUNTER_TABLE, key, {'key': key, 'value': value})
        except OpenSearchError as e:
            raise CounterStoreError(f'Failed to write counter {key}: {e}')

    def delete(self, key: str) -> None:
        try:
            self.opensearch.delete_document(COUNTER_TABLE, key)
        except OpenSearchError as e:
            raise CounterStoreError(f'Failed to delete counter {key}: {e}')

    def keys(self) -> List[str]:
        try:
            return [result['id'] for result in self.opensearch.list_documents(COUNTER_TABLE)]
        except OpenSearchError as e:
            raise CounterStoreError(f'Failed to list counters: {e}')
