"""
Tests for the orchestrator health check and logging helpers.
"""

import logging

import pytest

from portfolio_rag.services.health_check import check_health, get_health_status, get_system_info
from portfolio_rag.services.profile_store import InMemoryProfileStore
from portfolio_rag.services.rag_orchestrator import RAGOrchestrator
from portfolio_rag.utils.logging_config import get_logger, resolve_level


@pytest.fixture
def orchestrator(profile_store, rate_limiter, generator, app_config):
    return RAGOrchestrator(profile_store, rate_limiter, generator, config=app_config)


class TestHealthStatus:

    def test_healthy_components(self, orchestrator, generator):
        status = get_health_status(orchestrator)

        assert status['profile_store'] == {'healthy': True, 'backend': 'InMemoryProfileStore', 'owner': '김하늬'}
        assert status['question_patterns'] == {'healthy': True, 'count': 3}
        assert status['counter_store']['remaining_hourly'] == 10
        assert 'generator' not in status
        assert generator.calls == []

    def test_generator_check_is_not_charged(self, orchestrator, rate_limiter, generator):
        status = get_health_status(orchestrator, check_generator=True)

        assert status['generator'] == {'healthy': True}
        assert len(generator.calls) == 1
        assert rate_limiter.get_remaining_questions()['hourly'] == 10

    def test_empty_profile_is_unhealthy(self, rate_limiter, generator, app_config):
        orchestrator = RAGOrchestrator(InMemoryProfileStore(), rate_limiter, generator, config=app_config)

        assert get_health_status(orchestrator)['profile_store']['healthy'] is False
        assert check_health(orchestrator) is False

    def test_failing_store_is_reported(self, tables, rate_limiter, generator, app_config):

        class Offline(InMemoryProfileStore):

            def fetch_table(self, table):
                raise RuntimeError('connection refused')

        orchestrator = RAGOrchestrator(Offline(tables), rate_limiter, generator, config=app_config)
        status = get_health_status(orchestrator)

        assert status['profile_store'] == {'healthy': False, 'error': 'connection refused'}
        assert status['question_patterns']['healthy'] is False

    def test_check_health(self, orchestrator):
        assert check_health(orchestrator) is True

    def test_system_info(self, orchestrator, app_config):
        info = get_system_info(orchestrator, app_config)

        assert info['service_name'] == 'PortfolioRAG'
        assert info['configuration']['profile_store_backend'] == 'memory'
        assert info['configuration']['max_questions_per_day'] == 20
        assert info['health_status']['profile_store']['healthy'] is True


class TestLogging:

    @pytest.mark.parametrize('name,level', [
        ('DEBUG', logging.DEBUG),
        ('warning', logging.WARNING),
        ('verbose', logging.INFO),
        ('', logging.INFO),
    ])
    def test_resolve_level(self, name, level):
        assert resolve_level(name) == level

    def test_get_logger_returns_named_logger(self):
        assert get_logger('portfolio_rag.services.rate_limiter').name == 'portfolio_rag.services.rate_limiter'
