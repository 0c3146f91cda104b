"""
Chat request validation and response/error payloads.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple

from ..models.core import ConversationTurn
from ..utils.config import AppConfig, ConfigurationError
from ..utils.logging_config import get_logger
from .rag_orchestrator import RAGOrchestrator

logger = get_logger(__name__)

VALID_ROLES = ('user', 'assistant')


class InvalidRequestError(Exception):
    """Raised when a chat request payload is malformed."""
    pass


def parse_request(payload: Any, history_limit: int = 10) -> Tuple[str, List[ConversationTurn]]:
    """
    Validate a chat request payload.

    Args:
        payload: {'message': str, 'conversationHistory': [{'role', 'content'}]}
        history_limit: Number of most recent turns to keep

    Returns:
        Tuple of (message, conversation turns)

    Raises:
        InvalidRequestError: If the message is missing or the history is malformed
    """
    if not isinstance(payload, dict):
        raise InvalidRequestError('Message is required')

    message = payload.get('message')
    if not isinstance(message, str) or not message.strip():
        raise InvalidRequestError('Message is required')

    history = payload.get('conversationHistory') or []
    if not isinstance(history, list):
        raise InvalidRequestError('conversationHistory must be a list')

    turns = []
    for turn in history:
        if not isinstance(turn, dict) or turn.get('role') not in VALID_ROLES or not isinstance(turn.get('content'), str):
            raise InvalidRequestError('conversationHistory entries need a user or assistant role and text content')
        turns.append(ConversationTurn(role=turn['role'], content=turn['content']))

    return message, turns[-history_limit:] if history_limit > 0 else []


def error_payload(error: str, exc: Optional[Exception] = None, production: bool = False) -> Dict[str, str]:
    payload = {'error': error}
    if exc is not None and not production:
        payload['details'] = str(exc)
    return payload


def handle_chat_request(payload: Any,
                        get_orchestrator: Callable[[], RAGOrchestrator],
                        app_config: Optional[AppConfig] = None) -> Dict[str, str]:
    """
    Answer a chat request payload.

    Args:
        payload: Request payload
        get_orchestrator: Returns the orchestrator; may raise ConfigurationError
        app_config: AppConfig instance, uses default if None

    Returns:
        {'response': str} on success, {'error': str, 'details'?: str} otherwise
    """
    if app_config is None:
        from ..utils.config import config as default_config
        app_config = default_config

    try:
        message, history = parse_request(payload, app_config.matcher.history_limit)
    except InvalidRequestError as e:
        logger.warning(f'Rejected chat request: {e}')
        return {'error': str(e)}

    try:
        orchestrator = get_orchestrator()
    except ConfigurationError as e:
        logger.error(f'Configuration error: {e}')
        return error_payload('Configuration error', e, app_config.is_production)

    try:
        return {'response': orchestrator.answer(message, history)}
    except Exception as e:
        logger.error(f'Chat request failed: {e}')
        return error_payload('Internal server error', e, app_config.is_production)
