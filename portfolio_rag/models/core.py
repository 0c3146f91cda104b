"""
Core data models for the portfolio question-answering pipeline.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

PLACEHOLDER_PATTERN = re.compile(r'\{\{(\w+)\}\}')

TemplateValue = Union[str, List[str], None]
TemplateData = Dict[str, TemplateValue]


class Category(str, Enum):
    PERSONAL = 'personal'
    SKILLS = 'skills'
    PROJECTS = 'projects'
    EXPERIENCE = 'experience'
    OTHER = 'other'


class ResponseType(str, Enum):
    STATIC = 'static'
    TEMPLATE = 'template'


class MatchType(str, Enum):
    EXACT = 'exact'
    KEYWORD = 'keyword'
    SIMILARITY = 'similarity'


class MatchSource(str, Enum):
    """Matcher chain stage that produced an answer."""
    PREDEFINED = 'predefined'
    CONTEXT_REFERENCE = 'context_reference'
    EXACT_PATTERN = 'exact_pattern'
    KEYWORD_PATTERN = 'keyword_pattern'
    KEYWORD_TABLE = 'keyword_table'
    GREETING = 'greeting'
    LLM = 'llm'
    RATE_LIMITED = 'rate_limited'


def as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(',') if item.strip()]
    return [str(item) for item in value]


def as_phrases(value: Any) -> List[str]:
    """Like as_list, but a bare string is one phrase; questions may contain commas."""
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    return as_list(value)


@dataclass(frozen=True)
class QuestionPattern:
    """A stored question with its equivalent phrasings and answer template.

    Patterns are loaded from the ``hardcoded_responses`` table and never mutated.
    """
    id: str
    patterns: List[str]
    keywords: List[str]
    category: Category
    response_type: ResponseType
    template: str
    match_type: MatchType

    def __post_init__(self):
        if not self.patterns:
            raise ValueError(f'Question pattern {self.id} has no patterns')
        if self.response_type == ResponseType.TEMPLATE and not PLACEHOLDER_PATTERN.search(self.template):
            raise ValueError(f'Template pattern {self.id} has no {{{{placeholder}}}}')

    @classmethod
    def from_dict(cls, doc: Dict[str, Any]) -> 'QuestionPattern':
        """Build a pattern from a stored row.

        Raises:
            ValueError: If the row violates a pattern invariant or has an unknown enum value
        """
        try:
            category = Category(doc.get('category') or Category.OTHER.value)
        except ValueError:
            category = Category.OTHER

        return cls(id=str(doc.get('id', '')),
                   patterns=as_phrases(doc.get('patterns')),
                   keywords=[keyword.lower() for keyword in as_list(doc.get('keywords'))],
                   category=category,
                   response_type=ResponseType(doc.get('response_type', ResponseType.STATIC.value)),
                   template=doc.get('template') or '',
                   match_type=MatchType(doc.get('match_type', MatchType.EXACT.value)))


@dataclass
class ConversationTurn:
    role: str  # user | assistant
    content: str

    @classmethod
    def from_dict(cls, doc: Dict[str, Any]) -> 'ConversationTurn':
        return cls(role=str(doc.get('role', '')), content=str(doc.get('content', '')))


@dataclass
class QuestionLog:
    """One charged question inside a rate limit bucket."""
    timestamp: int  # epoch milliseconds
    count: int = 1


@dataclass
class Personal:
    name: str = ''
    email: str = ''
    phone: str = ''
    location: str = ''
    github: Optional[str] = None
    linkedin: Optional[str] = None
    summary: Optional[str] = None


@dataclass
class Skill:
    skill_name: str
    category: str
    proficiency: Optional[str] = None
    description: Optional[str] = None


@dataclass
class Project:
    project_name: str
    description: str = ''
    role: str = ''
    technologies: List[str] = field(default_factory=list)
    github: Optional[str] = None


@dataclass
class Career:
    company_name: str
    position: str = ''
    start_date: str = ''
    end_date: Optional[str] = None
    is_current: bool = False
    description: str = ''
    main_tasks: Optional[str] = None
    technologies: List[str] = field(default_factory=list)

    @property
    def ongoing(self) -> bool:
        return self.is_current or not self.end_date


@dataclass
class RateLimitDecision:
    allowed: bool
    reason: Optional[str] = None
    remaining: Optional[int] = None


@dataclass
class ReferenceResult:
    has_reference: bool
    referenced_entity: Optional[str] = None
    entity_type: Optional[str] = None  # project | technology


@dataclass
class MatchResult:
    """Answer produced by one stage of the matcher chain."""
    response: str
    source: MatchSource
    pattern_id: Optional[str] = None
    category: Optional[str] = None


@dataclass
class AnswerResult:
    response: str
    source: MatchSource
    used_llm: bool = False
    categories: List[str] = field(default_factory=list)
