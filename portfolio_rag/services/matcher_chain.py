"""
Ordered matcher chain answering questions without the language model.
"""

import threading
from typing import Callable, Dict, List, Optional, Sequence

from ..data.predefined_answers import PREDEFINED_ANSWERS
from ..models.core import MatchResult, MatchSource, QuestionPattern, ResponseType
from ..utils.config import MatcherConfig, PortfolioConfig
from ..utils.logging_config import get_logger
from ..utils.text_normalizer import normalize_question
from .profile_store import ProfileStore
from .question_matcher import exact_match, keyword_match, similarity_match
from .reference_detector import Turn, detect_reference
from .template_engine import TemplateFiller, render_template

logger = get_logger(__name__)

GREETING_TOKENS = ('안녕', '안녕하세요', '하이', '헬로', 'hello', 'hi')

GREETING_RESPONSE = ('안녕하세요! 저는 개발자 {owner_name}입니다 😊 제 포트폴리오에 대해 궁금한 게 있으시면 편하게 물어보세요. '
                     '경력이나 프로젝트, 기술 스택 뭐든지 좋아요!')

PROJECT_REFERENCE_TEMPLATE = """**{{project_name}}** 프로젝트에 대해 더 자세히 말씀드릴게요.

**역할**: {{role}}
**설명**: {{description}}
**사용 기술**: {{technologies}}
**GitHub**: {{github}}"""

Matcher = Callable[[str, Sequence[Turn]], Optional[MatchResult]]


class MatcherChain:
    """Try each matcher in priority order and return the first answer.

    Order: predefined answers, back-reference to a known project, exact pattern, keyword and
    similarity patterns, legacy keyword table, greeting. A matcher that raises is treated as a
    miss and the chain moves on.
    """

    def __init__(self,
                 profile_store: ProfileStore,
                 config: Optional[MatcherConfig] = None,
                 portfolio: Optional[PortfolioConfig] = None,
                 predefined_answers: Optional[Dict[str, str]] = None):
        if config is None or portfolio is None:
            from ..utils.config import config as app_config
            config = config or app_config.matcher
            portfolio = portfolio or app_config.portfolio

        self.profile_store = profile_store
        self.config = config
        self.portfolio = portfolio
        self.predefined_answers = PREDEFINED_ANSWERS if predefined_answers is None else predefined_answers
        self.template_filler = TemplateFiller(profile_store)

        self._patterns: Optional[List[QuestionPattern]] = None
        self._patterns_lock = threading.Lock()

        self.matchers: List[Matcher] = [
            self.match_predefined,
            self.match_context_reference,
            self.match_exact_pattern,
            self.match_keyword_pattern,
            self.match_keyword_table,
            self.match_greeting,
        ]

    def match(self, question: str, history: Optional[Sequence[Turn]] = None) -> Optional[MatchResult]:
        """
        Run the matchers in order.

        Args:
            question: User question
            history: Previous conversation turns, oldest first

        Returns:
            MatchResult from the first matcher that answers, None if none does
        """
        history = history or []

        for matcher in self.matchers:
            try:
                result = matcher(question, history)
            except Exception as e:
                logger.warning(f'Matcher {matcher.__name__} failed, treating as no match: {e}')
                continue

            if result is not None:
                logger.debug(f'Question answered by {result.source.value} (pattern: {result.pattern_id})')
                return result

        logger.debug('No matcher answered the question')
        return None

    def get_patterns(self) -> List[QuestionPattern]:
        """Question patterns, loaded from the store once per process.

        A failed load is not cached so the next request tries again.
        """
        if self._patterns is None:
            with self._patterns_lock:
                if self._patterns is None:
                    self._patterns = self.profile_store.get_question_patterns()
                    logger.info(f'Loaded {len(self._patterns)} question patterns')
        return self._patterns

    def _pattern_result(self, pattern: QuestionPattern, source: MatchSource) -> MatchResult:
        if pattern.response_type == ResponseType.TEMPLATE:
            response = self.template_filler.fill(pattern.template)
        else:
            response = pattern.template
        return MatchResult(response=response, source=source, pattern_id=pattern.id, category=pattern.category.value)

    def match_predefined(self, question: str, history: Sequence[Turn]) -> Optional[MatchResult]:
        answer = self.predefined_answers.get(question.strip())
        if answer is None:
            return None
        return MatchResult(response=answer, source=MatchSource.PREDEFINED)

    def match_context_reference(self, question: str, history: Sequence[Turn]) -> Optional[MatchResult]:
        reference = detect_reference(question, history, turns=self.config.reference_history_turns)
        if not reference.has_reference or reference.entity_type != 'project' or not reference.referenced_entity:
            return None

        project = self.profile_store.find_project(reference.referenced_entity)
        if project is None:
            logger.debug(f'Referenced entity {reference.referenced_entity!r} is not a known project')
            return None

        response = render_template(
            PROJECT_REFERENCE_TEMPLATE, {
                'project_name': project.project_name,
                'role': project.role,
                'description': project.description,
                'technologies': project.technologies,
                'github': project.github,
            })
        return MatchResult(response=response, source=MatchSource.CONTEXT_REFERENCE, category='projects')

    def match_exact_pattern(self, question: str, history: Sequence[Turn]) -> Optional[MatchResult]:
        pattern = exact_match(question, self.get_patterns())
        if pattern is None:
            return None
        return self._pattern_result(pattern, MatchSource.EXACT_PATTERN)

    def match_keyword_pattern(self, question: str, history: Sequence[Turn]) -> Optional[MatchResult]:
        patterns = self.get_patterns()
        pattern = (keyword_match(question, patterns, self.config.keyword_threshold)
                   or similarity_match(question, patterns, self.config.similarity_threshold))
        if pattern is None:
            return None
        return self._pattern_result(pattern, MatchSource.KEYWORD_PATTERN)

    def match_keyword_table(self, question: str, history: Sequence[Turn]) -> Optional[MatchResult]:
        response = self.profile_store.find_keyword_response(question)
        if not response:
            return None
        return MatchResult(response=response, source=MatchSource.KEYWORD_TABLE)

    def match_greeting(self, question: str, history: Sequence[Turn]) -> Optional[MatchResult]:
        normalized = normalize_question(question)
        if not any(token in normalized for token in GREETING_TOKENS):
            return None
        return MatchResult(response=GREETING_RESPONSE.format(owner_name=self.portfolio.owner_name),
                           source=MatchSource.GREETING)
