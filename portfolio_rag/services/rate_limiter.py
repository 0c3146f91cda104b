"""
Hourly and daily question ceilings for the generation fallback.
"""

import json
from dataclasses import asdict
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from ..models.core import QuestionLog, RateLimitDecision
from ..utils.config import RateLimitConfig
from ..utils.logging_config import get_logger
from ..utils.timestamp_utils import (ONE_DAY_MS, day_bucket_key, hour_bucket_key, hours_until_next_day,
                                     minutes_until_next_hour, next_hour, next_midnight, to_millis)
from .counter_store import CounterStore

logger = get_logger(__name__)

HOURLY_KEY_PREFIX = 'chatbot_rate_limit_hourly'
DAILY_KEY_PREFIX = 'chatbot_rate_limit_daily'
CONFIG_KEY = 'chatbot_rate_limit_config'


class RateLimiter:
    """Count charged questions in per-hour and per-day buckets.

    The limiter never charges on its own: callers invoke ``log_question`` once they commit to the
    chargeable path. Read-modify-write on the store is not atomic, so concurrent callers may
    undercount slightly.
    """

    def __init__(self,
                 store: CounterStore,
                 config: Optional[RateLimitConfig] = None,
                 clock: Callable[[], datetime] = datetime.now):
        """
        Initialize the rate limiter.

        Args:
            store: Counter store holding bucket records
            config: Default ceilings, used when no configuration is stored
            clock: Returns the current local time
        """
        if config is None:
            from ..utils.config import config as app_config
            config = app_config.rate_limit

        self.store = store
        self.default_config = config
        self.clock = clock

    def _hourly_key(self, now: datetime) -> str:
        return f'{HOURLY_KEY_PREFIX}_{hour_bucket_key(now)}'

    def _daily_key(self, now: datetime) -> str:
        return f'{DAILY_KEY_PREFIX}_{day_bucket_key(now)}'

    def _load_logs(self, key: str, now: datetime) -> List[QuestionLog]:
        """Load a bucket record, dropping entries older than 24 hours."""
        try:
            stored = self.store.get(key)
            if not stored:
                return []
            entries = json.loads(stored)
            cutoff = to_millis(now) - ONE_DAY_MS
            logs = [QuestionLog(timestamp=int(entry['timestamp']), count=int(entry.get('count', 1))) for entry in entries]
            return [log for log in logs if log.timestamp > cutoff]
        except Exception as e:
            logger.warning(f'Unreadable rate limit record {key}, treating as empty: {e}')
            return []

    def _save_logs(self, key: str, logs: List[QuestionLog]) -> None:
        try:
            self.store.set(key, json.dumps([asdict(log) for log in logs]))
        except Exception as e:
            logger.error(f'Failed to save question logs for {key}: {e}')

    def _counts(self, now: datetime) -> Dict[str, int]:
        hourly = sum(log.count for log in self._load_logs(self._hourly_key(now), now))
        daily = sum(log.count for log in self._load_logs(self._daily_key(now), now))
        return {'hourly': hourly, 'daily': daily}

    def get_config(self) -> RateLimitConfig:
        """Stored ceilings, falling back to the defaults this limiter was built with."""
        try:
            stored = self.store.get(CONFIG_KEY)
            if stored:
                return RateLimitConfig(**json.loads(stored))
        except Exception as e:
            logger.warning(f'Unreadable rate limit configuration, using defaults: {e}')
        return self.default_config

    def set_config(self, config: RateLimitConfig) -> None:
        try:
            self.store.set(CONFIG_KEY, json.dumps(asdict(config)))
        except Exception as e:
            logger.error(f'Failed to save rate limit configuration: {e}')

    def can_ask_question(self) -> RateLimitDecision:
        """
        Check whether another chargeable question is allowed right now.

        Returns:
            RateLimitDecision; denied decisions carry a reason naming when the limit resets
        """
        config = self.get_config()
        now = self.clock()
        counts = self._counts(now)

        if counts['hourly'] >= config.max_questions_per_hour:
            minutes = minutes_until_next_hour(now)
            logger.info(f'Hourly question limit reached ({counts["hourly"]}/{config.max_questions_per_hour})')
            return RateLimitDecision(allowed=False,
                                     reason=f'시간당 질문 제한에 도달했습니다. {minutes}분 후 다시 시도해주세요.',
                                     remaining=0)

        if counts['daily'] >= config.max_questions_per_day:
            hours = hours_until_next_day(now)
            logger.info(f'Daily question limit reached ({counts["daily"]}/{config.max_questions_per_day})')
            return RateLimitDecision(allowed=False,
                                     reason=f'일일 질문 제한에 도달했습니다. {hours}시간 후 다시 시도해주세요.',
                                     remaining=0)

        remaining = min(config.max_questions_per_hour - counts['hourly'], config.max_questions_per_day - counts['daily'])
        return RateLimitDecision(allowed=True, remaining=remaining)

    def log_question(self) -> None:
        """Charge one question to the current hour and day buckets."""
        now = self.clock()
        entry = QuestionLog(timestamp=to_millis(now), count=1)

        for key in (self._hourly_key(now), self._daily_key(now)):
            logs = self._load_logs(key, now)
            logs.append(entry)
            self._save_logs(key, logs)

        logger.debug(f'Logged chargeable question at {now.isoformat()}')

    def get_remaining_questions(self) -> Dict[str, Any]:
        """
        Remaining questions in the current buckets.

        Returns:
            Dict with 'hourly', 'daily', 'next_reset_hour' and 'next_reset_day'
        """
        config = self.get_config()
        now = self.clock()
        counts = self._counts(now)

        return {
            'hourly': max(0, config.max_questions_per_hour - counts['hourly']),
            'daily': max(0, config.max_questions_per_day - counts['daily']),
            'next_reset_hour': next_hour(now),
            'next_reset_day': next_midnight(now),
        }

    def reset_rate_limit(self) -> None:
        """Remove every hourly and daily bucket; stored ceilings are kept."""
        try:
            for key in self.store.keys():
                if key.startswith(HOURLY_KEY_PREFIX) or key.startswith(DAILY_KEY_PREFIX):
                    self.store.delete(key)
        except Exception as e:
            logger.error(f'Failed to reset rate limit: {e}')
            return

        logger.info('Rate limit buckets reset')
