"""
Language model usage tracking and cost estimation.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

# USD per million tokens
INPUT_PRICE_PER_MILLION = 0.075
OUTPUT_PRICE_PER_MILLION = 0.30


@dataclass
class LLMCallLog:
    question: str
    timestamp: str
    response_length: int
    estimated_tokens: int
    used_llm: bool
    matched_category: Optional[str] = None


@dataclass
class CostStats:
    total_calls: int
    llm_calls: int
    hardcoded_calls: int
    llm_call_rate: float  # percent
    estimated_cost: float
    average_tokens_per_call: float


def estimate_tokens(text: str) -> int:
    """Rough token count, about four characters per token."""
    return math.ceil(len(text) / 4)


def create_llm_call_log(question: str, response: str, used_llm: bool, matched_category: Optional[str] = None) -> LLMCallLog:
    return LLMCallLog(question=question,
                      timestamp=datetime.now().isoformat(),
                      response_length=len(response),
                      estimated_tokens=estimate_tokens(question + response),
                      used_llm=used_llm,
                      matched_category=matched_category)


def estimate_cost(tokens: float, is_input: bool = True) -> float:
    price = INPUT_PRICE_PER_MILLION if is_input else OUTPUT_PRICE_PER_MILLION
    return tokens / 1_000_000 * price


def calculate_stats(logs: Iterable[LLMCallLog]) -> CostStats:
    """
    Summarize call logs.

    Tokens of language model calls are split evenly between input and output for the cost estimate.

    Args:
        logs: Call logs to summarize

    Returns:
        CostStats
    """
    logs: List[LLMCallLog] = list(logs)
    llm_logs = [log for log in logs if log.used_llm]

    total_calls = len(logs)
    llm_calls = len(llm_logs)
    total_tokens = sum(log.estimated_tokens for log in llm_logs)

    return CostStats(total_calls=total_calls,
                     llm_calls=llm_calls,
                     hardcoded_calls=total_calls - llm_calls,
                     llm_call_rate=llm_calls / total_calls * 100 if total_calls else 0.0,
                     estimated_cost=estimate_cost(total_tokens * 0.5, True) + estimate_cost(total_tokens * 0.5, False),
                     average_tokens_per_call=total_tokens / llm_calls if llm_calls else 0.0)
