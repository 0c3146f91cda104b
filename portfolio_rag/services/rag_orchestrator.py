"""
RAG orchestrator: matcher chain first, rate-limited language model fallback last.
"""

from collections import deque
from typing import Callable, Deque, Iterable, List, Optional, Sequence

from ..models.core import AnswerResult, Category, ConversationTurn, MatchSource
from ..utils.config import AppConfig, ConfigurationError, validate_config
from ..utils.logging_config import get_logger
from .category_detector import detect_categories
from .counter_store import CounterStore, InMemoryCounterStore, OpenSearchCounterStore
from .matcher_chain import MatcherChain
from .profile_store import InMemoryProfileStore, OpenSearchProfileStore, ProfileStore, ProfileStoreError
from .rate_limiter import RateLimiter
from .reference_detector import Turn
from .usage_analytics import CostStats, LLMCallLog, calculate_stats, create_llm_call_log

logger = get_logger(__name__)

GenerateFn = Callable[[str, str], str]

MAX_CALL_LOGS = 1000

RATE_LIMIT_MESSAGE = '⚠️ {reason}\n\n사전 준비된 질문은 제한 없이 사용할 수 있습니다.'

SYSTEM_PROMPT = """당신은 개발자 {owner_name}을(를) 대신해서 친근하고 자연스럽게 대화하는 AI 어시스턴트입니다.

**중요: 절대 규칙**
- 아래 제공된 "{owner_name} 이력서 정보"는 프로필 데이터베이스의 personal, skills, career, project 테이블에서 직접 가져온 실제 데이터입니다
- 제공된 정보에 명시된 내용만 사용하세요
- 제공된 정보에 없는 기술, 경력, 프로젝트는 절대 언급하지 마세요. 일반적인 기술을 추측하거나 상상해서 말하지 마세요.
- 일반적인 개발자 지식을 사용하지 말고, 오직 제공된 정보만 사용하세요
- 정보가 불충분하면 "제 이력서에 그 부분이 없네요"라고 솔직하게 말하세요

답변 가이드라인:
- 친근하고 편안한 말투로 대화하듯이 답변하세요
- 1인칭 시점으로 답변하세요 ("저는...", "제가...")
- {owner_name}의 관점에서 답변하세요
- 한국어로 답변하세요
- 기술 스택을 물어보면 제공된 정보의 모든 기술을 빠짐없이 나열하세요
- "가장 최근 프로젝트" 또는 "최근에 한 일"을 물어보면 현재 회사에서 작업한 내용을 자세히 설명하세요
- 기술명, 프로젝트명, 회사명 등 중요한 단어는 **볼드**로 강조하세요
- 따옴표("")를 사용하지 말고, 대신 볼드 처리를 사용하세요"""


class RAGOrchestratorError(Exception):
    """Raised when the language model fallback cannot produce an answer."""
    pass


def to_turns(history: Optional[Iterable[Turn]]) -> List[ConversationTurn]:
    turns = []
    for turn in history or []:
        turns.append(turn if isinstance(turn, ConversationTurn) else ConversationTurn.from_dict(turn))
    return turns


def build_system_prompt(owner_name: str, categories: Sequence[str]) -> str:
    prompt = SYSTEM_PROMPT.format(owner_name=owner_name)
    if categories:
        prompt += f'\n- 이 질문은 다음 주제에 관한 것입니다: {", ".join(categories)}'
    return prompt


def build_user_message(query: str, contexts: Sequence[str], history: Sequence[ConversationTurn], owner_name: str) -> str:
    """Question, recent conversation and the résumé context block."""
    message = query

    if history:
        lines = [f'{"사용자" if turn.role == "user" else "어시스턴트"}: {turn.content}' for turn in history]
        message += '\n\n===이전 대화===\n' + '\n'.join(lines)

    if contexts:
        message += f'\n\n==={owner_name} 이력서 정보 (이것만 사용하세요)===\n' + '\n\n'.join(contexts)

    return message


class RAGOrchestrator:
    """Single entry point answering portfolio questions.

    Matcher chain answers are free. Only the language model fallback checks and charges the
    rate limiter.
    """

    def __init__(self,
                 profile_store: ProfileStore,
                 rate_limiter: RateLimiter,
                 generate: GenerateFn,
                 matcher_chain: Optional[MatcherChain] = None,
                 config: Optional[AppConfig] = None):
        """
        Initialize the orchestrator.

        Args:
            profile_store: Profile tables used for context and templates
            rate_limiter: Limiter guarding the language model fallback
            generate: Generation function taking (system_prompt, user_message)
            matcher_chain: Matcher chain, built from the profile store if None
            config: AppConfig instance, uses default if None
        """
        if config is None:
            from ..utils.config import config as default_config
            config = default_config

        self.config = config
        self.profile_store = profile_store
        self.rate_limiter = rate_limiter
        self.generate = generate
        self.matcher_chain = matcher_chain or MatcherChain(profile_store, config.matcher, config.portfolio)
        self.call_logs: Deque[LLMCallLog] = deque(maxlen=MAX_CALL_LOGS)

        logger.info('Initialized RAGOrchestrator')

    def answer(self, query: str, history: Optional[Iterable[Turn]] = None) -> str:
        return self.answer_with_details(query, history).response

    def answer_with_details(self, query: str, history: Optional[Iterable[Turn]] = None) -> AnswerResult:
        """
        Answer a question.

        Args:
            query: User question
            history: Previous conversation turns, oldest first

        Returns:
            AnswerResult describing the answer and the path that produced it

        Raises:
            RAGOrchestratorError: If the language model fallback fails
        """
        turns = to_turns(history)

        match = self.matcher_chain.match(query, turns)
        if match is not None:
            result = AnswerResult(response=match.response,
                                  source=match.source,
                                  categories=[match.category] if match.category else [])
        else:
            result = self._generate_answer(query, turns)

        self.call_logs.append(
            create_llm_call_log(query, result.response, result.used_llm, result.categories[0] if result.categories else None))
        return result

    def _generate_answer(self, query: str, history: List[ConversationTurn]) -> AnswerResult:
        decision = self.rate_limiter.can_ask_question()
        if not decision.allowed:
            return AnswerResult(response=RATE_LIMIT_MESSAGE.format(reason=decision.reason), source=MatchSource.RATE_LIMITED)

        self.rate_limiter.log_question()

        categories = detect_categories(query)
        logger.debug(f'Detected categories: {categories}')

        try:
            contexts = self.fetch_context(categories)
            logger.debug(f'Found {len(contexts)} context entries')

            owner_name = self.config.portfolio.owner_name
            recent = history[-self.config.matcher.history_limit:] if self.config.matcher.history_limit > 0 else []
            response = self.generate(build_system_prompt(owner_name, categories),
                                     build_user_message(query, contexts, recent, owner_name))
        except Exception as e:
            logger.error(f'Answer generation failed: {e}')
            raise RAGOrchestratorError(f'Answer generation failed: {e}')

        return AnswerResult(response=response, source=MatchSource.LLM, used_llm=True, categories=categories)

    def fetch_context(self, categories: Sequence[str]) -> List[str]:
        """
        Format profile records for the detected categories.

        Args:
            categories: Detected categories; empty fetches every category

        Returns:
            Context entries, one per record
        """

        def wanted(category: Category) -> bool:
            return not categories or category.value in categories

        contexts = []

        if wanted(Category.SKILLS):
            for skill in self.profile_store.get_skills():
                proficiency = f' (숙련도: {skill.proficiency})' if skill.proficiency else ''
                description = f'\n{skill.description}' if skill.description else ''
                contexts.append(f'기술: {skill.skill_name}{proficiency}\n카테고리: {skill.category}{description}')

        if wanted(Category.PROJECTS):
            for project in self.profile_store.get_projects():
                tech_stack = f'\n사용 기술: {", ".join(project.technologies)}' if project.technologies else ''
                contexts.append(f'{project.project_name} 프로젝트 ({project.role})\n{project.description}{tech_stack}')

        if wanted(Category.EXPERIENCE):
            for career in self.profile_store.get_careers():
                period = f'{career.start_date} ~ {career.end_date or "현재"}'
                tasks = f'\n주요 업무: {career.main_tasks}' if career.main_tasks else ''
                tech_stack = f'\n사용 기술: {", ".join(career.technologies)}' if career.technologies else ''
                contexts.append(f'경력: {career.company_name} - {career.position} ({period})\n{career.description}{tasks}{tech_stack}')

        if wanted(Category.PERSONAL):
            personal = self.profile_store.get_personal()
            if personal is not None:
                github = f'\nGitHub: {personal.github}' if personal.github else ''
                contexts.append(f'이름: {personal.name}\n이메일: {personal.email}{github}')

        return contexts

    def get_usage_stats(self) -> CostStats:
        return calculate_stats(self.call_logs)


def build_orchestrator(app_config: Optional[AppConfig] = None, generate: Optional[GenerateFn] = None) -> RAGOrchestrator:
    """
    Wire the orchestrator from configuration.

    Args:
        app_config: AppConfig instance, uses default if None
        generate: Generation function, Bedrock if None

    Returns:
        RAGOrchestrator

    Raises:
        ConfigurationError: If a selected backend is missing required settings
    """
    if app_config is None:
        from ..utils.config import config as default_config
        app_config = default_config

    validate_config(app_config)

    opensearch = None
    if 'opensearch' in (app_config.stores.profile_backend, app_config.stores.counter_backend):
        from ..utils.opensearch_client import OpenSearchClient
        opensearch = OpenSearchClient(app_config.opensearch)

    if app_config.stores.profile_backend == 'memory':
        try:
            profile_store: ProfileStore = InMemoryProfileStore.from_json_file(app_config.stores.profile_data_path)
        except ProfileStoreError as e:
            raise ConfigurationError(f'Unusable profile data file: {e}')
    else:
        profile_store = OpenSearchProfileStore(app_config.opensearch, client=opensearch)

    if app_config.stores.counter_backend == 'opensearch':
        counter_store: CounterStore = OpenSearchCounterStore(app_config.opensearch, client=opensearch)
    else:
        counter_store = InMemoryCounterStore()

    if generate is None:
        from ..utils.bedrock_llm import BedrockLLM
        generate = BedrockLLM(app_config.bedrock_llm).generate

    rate_limiter = RateLimiter(counter_store, app_config.rate_limit)
    return RAGOrchestrator(profile_store, rate_limiter, generate, config=app_config)
