"""
Shared fixtures for the portfolio assistant test suite.

Provides:
- A small in-memory résumé with question patterns and keyword responses
- A controllable clock for rate limit buckets
- A recording stub in place of the language model
"""

import json
from datetime import datetime

import pytest

from portfolio_rag.services.counter_store import InMemoryCounterStore
from portfolio_rag.services.profile_store import InMemoryProfileStore
from portfolio_rag.services.rate_limiter import RateLimiter
from portfolio_rag.utils.config import (AppConfig, BedrockLLMConfig, MatcherConfig, MCPConfig, OpenSearchConfig,
                                        PortfolioConfig, RateLimitConfig, StoreConfig)

SKILLS_TEMPLATE = """**프론트엔드**: {{frontend_skills}}
**백엔드**: {{backend_skills}}
**데이터베이스**: {{database_skills}}"""


def sample_tables():
    return {
        'personal': [{
            'name': '김하늬',
            'email': 'haneul@example.com',
            'phone': '',
            'location': '서울',
            'github': 'https://github.com/haneul',
        }],
        'skills': [
            {'skill_name': 'React', 'category': 'frontend', 'proficiency': '상'},
            {'skill_name': 'Next.js', 'category': 'frontend'},
            {'skill_name': 'TypeScript', 'category': 'frontend'},
            {'skill_name': 'Node.js', 'category': 'backend'},
        ],
        'project': [{
            'project_name': 'AI 챗봇 포트폴리오',
            'description': 'RAG 기반 포트폴리오 챗봇',
            'role': '풀스택 개발',
            'technologies': 'Next.js, Supabase',
            'github': 'https://github.com/haneul/portfolio',
        }],
        'career': [
            {
                'company_name': 'Traport',
                'position': '프론트엔드 개발자',
                'start_date': '2021-01',
                'end_date': '2024-12',
                'description': '웹 애플리케이션 개발',
            },
            {
                'company_name': 'TeamRemited',
                'position': '프론트엔드 개발자',
                'start_date': '2025-03',
                'end_date': None,
                'is_current': True,
                'description': 'Next.js 웹과 React Native 앱 개발',
                'technologies': ['Next.js', 'React Native'],
            },
        ],
        'hardcoded_responses': [
            {
                'id': 'skills-template',
                'patterns': ['기술 스택 알려줘', '무슨 기술 써요'],
                'keywords': ['기술', '스택'],
                'category': 'skills',
                'response_type': 'template',
                'template': SKILLS_TEMPLATE,
                'match_type': 'keyword',
            },
            {
                'id': 'contact',
                'patterns': ['연락처 알려주세요'],
                'keywords': ['연락처', '이메일'],
                'category': 'personal',
                'response_type': 'static',
                'template': '이메일로 연락주세요.',
                'match_type': 'exact',
            },
            {
                'id': 'hobby',
                'patterns': ['취미가 뭐예요'],
                'keywords': ['취미'],
                'category': 'other',
                'response_type': 'static',
                'template': '코딩이 취미입니다.',
                'match_type': 'similarity',
            },
        ],
        'keyword_responses': [{'keyword': '블로그 주소', 'response': '블로그는 준비 중입니다.'}],
    }


class FakeClock:
    """Callable clock whose time tests move explicitly."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class StubGenerator:
    """Records every call and returns a fixed answer."""

    def __init__(self, answer: str = '저는 팀과의 소통을 가장 중요하게 생각해요.'):
        self.answer = answer
        self.calls = []

    def __call__(self, system_prompt: str, user_message: str) -> str:
        self.calls.append((system_prompt, user_message))
        return self.answer


@pytest.fixture
def tables():
    return sample_tables()


@pytest.fixture
def profile_store(tables):
    return InMemoryProfileStore(tables)


@pytest.fixture
def counter_store():
    return InMemoryCounterStore()


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 10, 19, 9, 5, 30))


@pytest.fixture
def rate_limiter(counter_store, clock):
    return RateLimiter(counter_store, RateLimitConfig(max_questions_per_hour=10, max_questions_per_day=20), clock=clock)


@pytest.fixture
def generator():
    return StubGenerator()


@pytest.fixture
def profile_file(tmp_path, tables):
    path = tmp_path / 'profile_data.json'
    path.write_text(json.dumps(tables, ensure_ascii=False), encoding='utf-8')
    return path


@pytest.fixture
def app_config(profile_file):
    return AppConfig(environment='development',
                     log_level='INFO',
                     bedrock_llm=BedrockLLMConfig(region='us-east-1',
                                                  model_id='test-model',
                                                  max_tokens=1000,
                                                  temperature=0.7,
                                                  retry_attempts=3,
                                                  retry_delay=0.0),
                     opensearch=OpenSearchConfig(endpoint='', port=443, region='us-east-1', service='aoss',
                                                 index_name='portfolio'),
                     stores=StoreConfig(profile_backend='memory',
                                        profile_data_path=str(profile_file),
                                        counter_backend='memory'),
                     rate_limit=RateLimitConfig(max_questions_per_hour=10, max_questions_per_day=20),
                     matcher=MatcherConfig(keyword_threshold=0.3,
                                           similarity_threshold=0.5,
                                           reference_history_turns=3,
                                           history_limit=10),
                     portfolio=PortfolioConfig(owner_name='김하늬'),
                     mcp=MCPConfig(transport='sse', host='127.0.0.1', port=8000))
