"""
Tests for the orchestrator: free matcher answers, rate-limited generation fallback.
"""

from dataclasses import replace
from datetime import datetime

import pytest

from portfolio_rag.data.predefined_answers import PREDEFINED_ANSWERS
from portfolio_rag.models.core import ConversationTurn, MatchSource
from portfolio_rag.services.counter_store import InMemoryCounterStore
from portfolio_rag.services.rag_orchestrator import (RAGOrchestrator, RAGOrchestratorError, build_orchestrator,
                                                     build_system_prompt, build_user_message)
from portfolio_rag.utils.config import ConfigurationError, StoreConfig

FALLBACK_QUESTION = '협업할 때 중요하게 생각하는 것은?'


@pytest.fixture
def orchestrator(profile_store, rate_limiter, generator, app_config):
    return RAGOrchestrator(profile_store, rate_limiter, generator, config=app_config)


class TestMatcherAnswers:

    def test_predefined_question_is_free(self, orchestrator, rate_limiter, generator):
        question = '현재 회사에서 무엇을 하나요?'

        assert orchestrator.answer(question) == PREDEFINED_ANSWERS[question]
        assert generator.calls == []
        assert rate_limiter.get_remaining_questions()['hourly'] == 10

    def test_pattern_answer_is_free(self, orchestrator, rate_limiter, generator):
        result = orchestrator.answer_with_details('연락처 알려주세요')

        assert result.source == MatchSource.EXACT_PATTERN
        assert not result.used_llm
        assert result.categories == ['personal']
        assert generator.calls == []
        assert rate_limiter.get_remaining_questions()['daily'] == 20

    @pytest.mark.parametrize('question,history,source', [
        ('연락처 알려주세요', None, MatchSource.EXACT_PATTERN),
        ('기술 스택 궁금해요', None, MatchSource.KEYWORD_PATTERN),
        ('블로그', None, MatchSource.KEYWORD_TABLE),
        ('그 프로젝트 더 자세히 알려줘', [ConversationTurn('assistant', '제가 만든 **AI 챗봇 포트폴리오** 프로젝트가 있어요')],
         MatchSource.CONTEXT_REFERENCE),
    ])
    def test_pattern_stages_are_not_charged(self, orchestrator, rate_limiter, generator, question, history, source):
        for _ in range(3):
            assert orchestrator.answer_with_details(question, history).source == source

        assert generator.calls == []
        assert rate_limiter.get_remaining_questions()['hourly'] == 10
        assert rate_limiter.get_remaining_questions()['daily'] == 20

    def test_matcher_answers_even_when_limit_reached(self, orchestrator, rate_limiter):
        for _ in range(10):
            rate_limiter.log_question()

        assert orchestrator.answer('안녕하세요').startswith('안녕하세요!')


class TestGenerationFallback:

    def test_unmatched_question_uses_generator(self, orchestrator, rate_limiter, generator):
        result = orchestrator.answer_with_details(FALLBACK_QUESTION)

        assert result.response == generator.answer
        assert result.source == MatchSource.LLM
        assert result.used_llm
        assert len(generator.calls) == 1
        assert rate_limiter.get_remaining_questions()['hourly'] == 9

    def test_hard_technical_question_is_generated_and_charged(self, orchestrator, rate_limiter, generator):
        question = '프로젝트에서 가장 어려웠던 기술적 도전과제는 무엇이었고, 어떻게 해결했나요?'
        assert rate_limiter.get_remaining_questions()['hourly'] == 10

        result = orchestrator.answer_with_details(question)

        assert result.source == MatchSource.LLM
        assert result.response == generator.answer
        assert result.categories == ['skills', 'projects']
        assert len(generator.calls) == 1
        assert generator.calls[0][1].startswith(question)
        assert rate_limiter.get_remaining_questions()['hourly'] == 9

    def test_prompt_contents(self, orchestrator, generator):
        orchestrator.answer(FALLBACK_QUESTION)

        system_prompt, user_message = generator.calls[0]
        assert '개발자 김하늬' in system_prompt
        assert user_message.startswith(FALLBACK_QUESTION)
        assert '===김하늬 이력서 정보 (이것만 사용하세요)===' in user_message
        assert '기술: React (숙련도: 상)' in user_message
        assert '경력: TeamRemited - 프론트엔드 개발자 (2025-03 ~ 현재)' in user_message

    def test_detected_categories_scope_context(self, orchestrator, generator):
        result = orchestrator.answer_with_details('Vue 써보셨어요?')

        assert result.categories == ['skills']
        system_prompt, user_message = generator.calls[0]
        assert '다음 주제에 관한 것입니다: skills' in system_prompt
        assert '기술: Vue' not in user_message
        assert '기술: React' in user_message
        assert 'AI 챗봇 포트폴리오 프로젝트' not in user_message

    def test_history_is_included(self, orchestrator, generator):
        history = [ConversationTurn('user', '반가워요'), {'role': 'assistant', 'content': '네 반가워요'}]
        orchestrator.answer(FALLBACK_QUESTION, history)

        _, user_message = generator.calls[0]
        assert '===이전 대화===\n사용자: 반가워요\n어시스턴트: 네 반가워요' in user_message

    def test_generator_failure_raises_after_charge(self, profile_store, rate_limiter, app_config):

        def failing(system_prompt, user_message):
            raise RuntimeError('model unavailable')

        orchestrator = RAGOrchestrator(profile_store, rate_limiter, failing, config=app_config)
        with pytest.raises(RAGOrchestratorError):
            orchestrator.answer(FALLBACK_QUESTION)
        assert rate_limiter.get_remaining_questions()['hourly'] == 9


class TestRateLimitedFallback:

    def test_twenty_first_question_refused(self, orchestrator, rate_limiter, generator, clock):
        for hour in (9, 10):
            clock.now = datetime(2026, 10, 19, hour, 0)
            for _ in range(10):
                orchestrator.answer(FALLBACK_QUESTION)
        assert len(generator.calls) == 20

        clock.now = datetime(2026, 10, 19, 11, 0)
        result = orchestrator.answer_with_details(FALLBACK_QUESTION)

        assert result.source == MatchSource.RATE_LIMITED
        assert not result.used_llm
        assert result.response == ('⚠️ 일일 질문 제한에 도달했습니다. 13시간 후 다시 시도해주세요.\n\n'
                                   '사전 준비된 질문은 제한 없이 사용할 수 있습니다.')
        assert len(generator.calls) == 20
        assert rate_limiter.get_remaining_questions()['daily'] == 0

    def test_hourly_refusal(self, orchestrator, generator):
        for _ in range(10):
            orchestrator.answer(FALLBACK_QUESTION)

        assert '시간당 질문 제한' in orchestrator.answer(FALLBACK_QUESTION)
        assert len(generator.calls) == 10


class TestFetchContext:

    def test_single_category(self, orchestrator):
        contexts = orchestrator.fetch_context(['skills'])
        assert len(contexts) == 4
        assert all(context.startswith('기술: ') for context in contexts)

    def test_experience_reads_careers(self, orchestrator):
        contexts = orchestrator.fetch_context(['experience'])
        assert [context.split('\n')[0] for context in contexts] == [
            '경력: TeamRemited - 프론트엔드 개발자 (2025-03 ~ 현재)',
            '경력: Traport - 프론트엔드 개발자 (2021-01 ~ 2024-12)',
        ]

    def test_no_category_reads_everything(self, orchestrator):
        contexts = orchestrator.fetch_context([])
        assert len(contexts) == 4 + 1 + 2 + 1
        assert contexts[-1] == '이름: 김하늬\n이메일: haneul@example.com\nGitHub: https://github.com/haneul'


class TestPromptBuilders:

    def test_system_prompt_without_categories(self):
        prompt = build_system_prompt('김하늬', [])
        assert '다음 주제' not in prompt
        assert '{owner_name}' not in prompt

    def test_user_message_without_context(self):
        assert build_user_message('질문', [], [], '김하늬') == '질문'


class TestUsageStats:

    def test_counts_matcher_and_generated_answers(self, orchestrator):
        orchestrator.answer('경력은 몇 년인가요?')
        orchestrator.answer(FALLBACK_QUESTION)

        stats = orchestrator.get_usage_stats()
        assert stats.total_calls == 2
        assert stats.llm_calls == 1
        assert stats.hardcoded_calls == 1
        assert stats.llm_call_rate == 50.0
        assert stats.estimated_cost > 0


class TestBuildOrchestrator:

    def test_memory_backends(self, app_config, generator):
        orchestrator = build_orchestrator(app_config, generate=generator)

        assert isinstance(orchestrator.rate_limiter.store, InMemoryCounterStore)
        assert orchestrator.answer(FALLBACK_QUESTION) == generator.answer

    def test_missing_profile_file(self, app_config, tmp_path, generator):
        broken = replace(app_config, stores=StoreConfig('memory', str(tmp_path / 'missing.json'), 'memory'))
        with pytest.raises(ConfigurationError):
            build_orchestrator(broken, generate=generator)

    def test_malformed_profile_file(self, app_config, tmp_path, generator):
        path = tmp_path / 'broken.json'
        path.write_text('not json', encoding='utf-8')
        broken = replace(app_config, stores=StoreConfig('memory', str(path), 'memory'))
        with pytest.raises(ConfigurationError):
            build_orchestrator(broken, generate=generator)

    def test_opensearch_backend_needs_endpoint(self, app_config, generator):
        broken = replace(app_config, stores=StoreConfig('opensearch', '', 'memory'))
        with pytest.raises(ConfigurationError):
            build_orchestrator(broken, generate=generator)
