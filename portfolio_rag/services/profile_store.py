"""
Profile data store: typed, read-only access to the résumé tables.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..models.core import Career, Personal, Project, QuestionPattern, Skill, as_list
from ..utils.config import OpenSearchConfig
from ..utils.logging_config import get_logger
from ..utils.opensearch_client import OpenSearchClient, OpenSearchError
from ..utils.text_normalizer import normalize_question

logger = get_logger(__name__)

PERSONAL_TABLES = ('personal', 'portfolio')
SKILLS_TABLE = 'skills'
PROJECT_TABLE = 'project'
CAREER_TABLE = 'career'
KEYWORD_TABLE = 'keyword_responses'
PATTERN_TABLE = 'hardcoded_responses'

KEYWORD_FIELD = 'keyword.keyword'
KEYWORD_TABLE_MAPPING = {
    'keyword': {
        'type': 'text',
        'fields': {
            'keyword': {
                'type': 'keyword',
                'ignore_above': 256
            }
        }
    },
    'response': {
        'type': 'text'
    }
}


class ProfileStoreError(Exception):
    """Custom exception for profile store errors."""
    pass


def personal_from_dict(doc: Dict[str, Any]) -> Personal:
    return Personal(name=doc.get('name') or '',
                    email=doc.get('email') or '',
                    phone=doc.get('phone') or '',
                    location=doc.get('location') or '',
                    github=doc.get('github'),
                    linkedin=doc.get('linkedin'),
                    summary=doc.get('summary'))


def skill_from_dict(doc: Dict[str, Any]) -> Skill:
    return Skill(skill_name=doc.get('skill_name') or '',
                 category=doc.get('category') or '',
                 proficiency=doc.get('proficiency'),
                 description=doc.get('description'))


def project_from_dict(doc: Dict[str, Any]) -> Project:
    return Project(project_name=doc.get('project_name') or '',
                   description=doc.get('description') or '',
                   role=doc.get('role') or '',
                   technologies=as_list(doc.get('technologies')),
                   github=doc.get('github'))


def career_from_dict(doc: Dict[str, Any]) -> Career:
    return Career(company_name=doc.get('company_name') or doc.get('company') or '',
                  position=doc.get('position') or '',
                  start_date=str(doc.get('start_date') or ''),
                  end_date=doc.get('end_date'),
                  is_current=bool(doc.get('is_current', False)),
                  description=doc.get('description') or '',
                  main_tasks=doc.get('main_tasks'),
                  technologies=as_list(doc.get('technologies')))


class ProfileStore(ABC):
    """Read access to profile tables.

    Subclasses only provide raw rows; conversion into records happens here so every backend
    yields identical types. Reads raise ProfileStoreError when the backend fails.
    """

    @abstractmethod
    def fetch_table(self, table: str) -> List[Dict[str, Any]]:
        """Return all rows of a table, empty if the table does not exist."""

    @abstractmethod
    def find_keyword_response(self, query: str) -> Optional[str]:
        """Return the response of the first row whose keyword contains ``query`` (case-insensitive)."""

    def get_personal(self) -> Optional[Personal]:
        for table in PERSONAL_TABLES:
            rows = self.fetch_table(table)
            if rows:
                return personal_from_dict(rows[0])
        return None

    def get_skills(self) -> List[Skill]:
        return [skill_from_dict(row) for row in self.fetch_table(SKILLS_TABLE)]

    def get_projects(self) -> List[Project]:
        return [project_from_dict(row) for row in self.fetch_table(PROJECT_TABLE)]

    def get_careers(self) -> List[Career]:
        """Careers, most recent start date first."""
        careers = [career_from_dict(row) for row in self.fetch_table(CAREER_TABLE)]
        return sorted(careers, key=lambda career: career.start_date, reverse=True)

    def get_question_patterns(self) -> List[QuestionPattern]:
        patterns = []
        for row in self.fetch_table(PATTERN_TABLE):
            try:
                patterns.append(QuestionPattern.from_dict(row))
            except (ValueError, TypeError) as e:
                logger.warning(f'Skipping invalid question pattern {row.get("id")}: {e}')
        return patterns

    def find_project(self, name: str) -> Optional[Project]:
        """Find a project whose name equals or contains ``name`` (or vice versa), ignoring case and spacing."""
        wanted = normalize_question(name)
        if not wanted:
            return None

        for project in self.get_projects():
            candidate = normalize_question(project.project_name)
            if candidate and (candidate == wanted or wanted in candidate or candidate in wanted):
                return project
        return None


class InMemoryProfileStore(ProfileStore):
    """Profile tables held in memory, optionally loaded from a JSON file keyed by table name."""

    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        for table, rows in (tables or {}).items():
            self.tables[table] = [rows] if isinstance(rows, dict) else list(rows)

    @classmethod
    def from_json_file(cls, path: str) -> 'InMemoryProfileStore':
        """
        Load tables from a JSON file.

        Raises:
            ProfileStoreError: If the file cannot be read or parsed
        """
        try:
            with open(path, encoding='utf-8') as f:
                tables = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f'Failed to load profile data from {path}: {e}')
            raise ProfileStoreError(f'Failed to load profile data: {e}')

        logger.info(f'Loaded profile tables from {path}: {", ".join(sorted(tables))}')
        return cls(tables)

    def fetch_table(self, table: str) -> List[Dict[str, Any]]:
        return list(self.tables.get(table, []))

    def find_keyword_response(self, query: str) -> Optional[str]:
        needle = query.lower().strip()
        if not needle:
            return None
        for row in self.tables.get(KEYWORD_TABLE, []):
            if needle in str(row.get('keyword', '')).lower():
                return row.get('response')
        return None


class OpenSearchProfileStore(ProfileStore):
    """Profile tables stored as OpenSearch indices.

    Keyword lookups match the unanalyzed ``keyword.keyword`` sub-field, the one dynamic mapping adds
    to string fields. A missing keyword index is created with the same mapping.
    """

    def __init__(self, config: OpenSearchConfig, client: Optional[OpenSearchClient] = None):
        self.opensearch = client or OpenSearchClient(config)

        try:
            self.opensearch.create_index_if_not_exists(KEYWORD_TABLE, KEYWORD_TABLE_MAPPING)
        except OpenSearchError as e:
            logger.warning(f'Failed to create keyword response index: {e}')

        logger.info('Initialized OpenSearchProfileStore')

    def fetch_table(self, table: str) -> List[Dict[str, Any]]:
        try:
            return [result['document'] for result in self.opensearch.list_documents(table)]
        except OpenSearchError as e:
            raise ProfileStoreError(f'Failed to read {table}: {e}')

    def find_keyword_response(self, query: str) -> Optional[str]:
        needle = query.lower().strip()
        if not needle:
            return None

        try:
            results = self.opensearch.wildcard_search(KEYWORD_TABLE, KEYWORD_FIELD, needle, size=1)
        except OpenSearchError as e:
            raise ProfileStoreError(f'Keyword lookup failed: {e}')

        if not results:
            return None
        return results[0]['document'].get('response')
