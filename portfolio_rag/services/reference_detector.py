"""
Back-reference detection ("그 프로젝트") against recent assistant replies.
"""

import re
from typing import Dict, Iterable, Optional, Union

from ..models.core import ConversationTurn, ReferenceResult
from ..utils.text_normalizer import normalize_question

REFERENCE_MARKERS = ('그', '그것', '그 프로젝트', '그 기술', '위에서', '앞서', '이전에', '방금')
BOLD_SPAN = re.compile(r'\*\*(.+?)\*\*', re.DOTALL)

Turn = Union[ConversationTurn, Dict[str, str]]


def _role_and_content(turn: Turn):
    if isinstance(turn, ConversationTurn):
        return turn.role, turn.content
    return turn.get('role', ''), turn.get('content', '')


def detect_reference(query: str, history: Optional[Iterable[Turn]] = None, turns: int = 3) -> ReferenceResult:
    """Detect a back-reference in the query and guess the entity it points at.

    The entity is the first bold span in the last ``turns`` assistant replies, read in
    chronological order. This is a heuristic, not coreference resolution.

    Args:
        query: Current question
        history: Previous conversation turns, oldest first
        turns: Number of recent assistant replies to scan

    Returns:
        ReferenceResult
    """
    normalized = normalize_question(query)
    if not any(marker in normalized for marker in REFERENCE_MARKERS):
        return ReferenceResult(has_reference=False)

    assistant_replies = [content for role, content in map(_role_and_content, history or []) if role == 'assistant']
    recent_text = '\n'.join(assistant_replies[-turns:]) if turns > 0 else ''

    match = BOLD_SPAN.search(recent_text)
    entity = match.group(1).strip() if match else None

    entity_type = None
    if '프로젝트' in query:
        entity_type = 'project'
    elif '기술' in query:
        entity_type = 'technology'

    return ReferenceResult(has_reference=True, referenced_entity=entity or None, entity_type=entity_type)
