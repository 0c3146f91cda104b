"""
Health check of the stores and generation function behind a running orchestrator.
"""

from typing import Any, Dict, Optional

from ..utils.config import AppConfig
from ..utils.logging_config import get_logger
from .rag_orchestrator import RAGOrchestrator

logger = get_logger(__name__)

SERVICE_NAME = 'PortfolioRAG'
VERSION = '1.0.0'


def check_health(orchestrator: RAGOrchestrator, check_generator: bool = False) -> bool:
    """Check the health of all system components.

    Args:
        orchestrator: Orchestrator whose collaborators are checked
        check_generator: Also send a one-line prompt to the generation function

    Returns:
        True if all components are healthy, False otherwise
    """
    health_status = get_health_status(orchestrator, check_generator)
    all_healthy = all(status.get('healthy', False) for status in health_status.values())

    if all_healthy:
        logger.info('All system components are healthy')
    else:
        logger.warning('Some system components are unhealthy')

    return all_healthy


def get_health_status(orchestrator: RAGOrchestrator, check_generator: bool = False) -> Dict[str, Any]:
    """Get detailed health status of each component.

    The generation function is only called when ``check_generator`` is set.

    Args:
        orchestrator: Orchestrator whose collaborators are checked
        check_generator: Also send a one-line prompt to the generation function

    Returns:
        Dictionary with health status of each component
    """
    health_status = {}

    try:
        personal = orchestrator.profile_store.get_personal()
        health_status['profile_store'] = {
            'healthy': personal is not None,
            'backend': type(orchestrator.profile_store).__name__,
            'owner': personal.name if personal else None
        }
    except Exception as e:
        health_status['profile_store'] = {'healthy': False, 'error': str(e)}

    try:
        patterns = orchestrator.matcher_chain.get_patterns()
        health_status['question_patterns'] = {'healthy': True, 'count': len(patterns)}
    except Exception as e:
        health_status['question_patterns'] = {'healthy': False, 'error': str(e)}

    try:
        remaining = orchestrator.rate_limiter.get_remaining_questions()
        health_status['counter_store'] = {
            'healthy': True,
            'backend': type(orchestrator.rate_limiter.store).__name__,
            'remaining_hourly': remaining['hourly'],
            'remaining_daily': remaining['daily']
        }
    except Exception as e:
        health_status['counter_store'] = {'healthy': False, 'error': str(e)}

    if check_generator:
        try:
            response = orchestrator.generate("You are a helpful assistant. Respond with just 'OK'.", 'Hi')
            health_status['generator'] = {'healthy': bool(response.strip())}
        except Exception as e:
            health_status['generator'] = {'healthy': False, 'error': str(e)}

    return health_status


def get_system_info(orchestrator: RAGOrchestrator, app_config: Optional[AppConfig] = None) -> Dict[str, Any]:
    """Get system information and configuration.

    Args:
        orchestrator: Orchestrator whose collaborators are checked
        app_config: AppConfig instance, uses default if None

    Returns:
        Dictionary with system information
    """
    if app_config is None:
        from ..utils.config import config as default_config
        app_config = default_config

    return {
        'service_name': SERVICE_NAME,
        'version': VERSION,
        'configuration': {
            'environment': app_config.environment,
            'bedrock_llm_model': app_config.bedrock_llm.model_id,
            'profile_store_backend': app_config.stores.profile_backend,
            'counter_store_backend': app_config.stores.counter_backend,
            'max_questions_per_hour': app_config.rate_limit.max_questions_per_hour,
            'max_questions_per_day': app_config.rate_limit.max_questions_per_day,
            'owner_name': app_config.portfolio.owner_name
        },
        'health_status': get_health_status(orchestrator)
    }
