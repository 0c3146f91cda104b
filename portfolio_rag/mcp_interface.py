"""
MCP interface exposing the portfolio assistant as fastmcp tools.
"""
import threading
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from fastmcp import FastMCP

from .data.predefined_answers import SUGGESTED_QUESTIONS
from .services.chat_request import error_payload, handle_chat_request
from .services.health_check import get_system_info
from .services.rag_orchestrator import RAGOrchestrator, build_orchestrator
from .utils.config import ConfigurationError, config
from .utils.logging_config import get_logger

logger = get_logger(__name__)

mcp = FastMCP('Portfolio Assistant')

_orchestrator: Optional[RAGOrchestrator] = None
_orchestrator_lock = threading.Lock()


def get_orchestrator() -> RAGOrchestrator:
    """Build the orchestrator on first use so configuration errors surface per request."""
    global _orchestrator
    if _orchestrator is None:
        with _orchestrator_lock:
            if _orchestrator is None:
                _orchestrator = build_orchestrator(config)
    return _orchestrator


@mcp.tool()
def ask_portfolio(message: str, conversation_history: Optional[List[Dict[str, str]]] = None) -> Dict[str, str]:
    """Ask a question about the portfolio owner's résumé.

    Args:
        message: Question text
        conversation_history: Previous turns as {'role': 'user'|'assistant', 'content': str}, oldest first

    Returns:
        {'response': str} or {'error': str, 'details'?: str}
    """
    return handle_chat_request({'message': message, 'conversationHistory': conversation_history or []}, get_orchestrator, config)


@mcp.tool()
def get_suggested_questions() -> List[str]:
    """Questions with ready-made answers that never count against the question limit."""
    return SUGGESTED_QUESTIONS


@mcp.tool()
def get_remaining_questions() -> Dict[str, Any]:
    """Remaining language model questions for the current hour and day."""
    try:
        remaining = get_orchestrator().rate_limiter.get_remaining_questions()
    except ConfigurationError as e:
        logger.error(f'Configuration error: {e}')
        return error_payload('Configuration error', e, config.is_production)

    return {
        'hourly': remaining['hourly'],
        'daily': remaining['daily'],
        'next_reset_hour': remaining['next_reset_hour'].isoformat(),
        'next_reset_day': remaining['next_reset_day'].isoformat(),
    }


@mcp.tool()
def get_usage_stats() -> Dict[str, Any]:
    """Language model usage and cost estimate since the server started."""
    try:
        return asdict(get_orchestrator().get_usage_stats())
    except ConfigurationError as e:
        logger.error(f'Configuration error: {e}')
        return error_payload('Configuration error', e, config.is_production)


@mcp.tool()
def get_system_status() -> Dict[str, Any]:
    """Service configuration and health of the profile store, patterns and counters."""
    try:
        return get_system_info(get_orchestrator(), config)
    except ConfigurationError as e:
        logger.error(f'Configuration error: {e}')
        return error_payload('Configuration error', e, config.is_production)


if __name__ == '__main__':
    transport = config.mcp.transport
    host = config.mcp.host
    port = config.mcp.port
    mcp.run(transport=transport, host=host, port=port)
