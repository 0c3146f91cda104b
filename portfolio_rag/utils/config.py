"""
Configuration management for AWS services and application settings.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass
class BedrockLLMConfig:
    """Configuration for Amazon Bedrock LLM service."""
    region: str
    model_id: str
    max_tokens: int
    temperature: float
    retry_attempts: int
    retry_delay: float


@dataclass
class OpenSearchConfig:
    """Configuration for OpenSearch."""
    endpoint: str
    port: int
    region: str
    service: str
    index_name: str


@dataclass
class StoreConfig:
    """Configuration for the profile data store and the rate limit counter store."""
    profile_backend: str  # opensearch | memory
    profile_data_path: str
    counter_backend: str  # opensearch | memory


@dataclass
class RateLimitConfig:
    """Question ceilings for the generation fallback."""
    max_questions_per_hour: int = 10
    max_questions_per_day: int = 20


@dataclass
class MatcherConfig:
    """Thresholds and windows used by the matcher chain."""
    keyword_threshold: float
    similarity_threshold: float
    reference_history_turns: int
    history_limit: int


@dataclass
class PortfolioConfig:
    """Configuration describing the portfolio owner."""
    owner_name: str


@dataclass
class MCPConfig:
    """Configuration for MCP interface."""
    transport: str
    host: str
    port: int


@dataclass
class AppConfig:
    """Main application configuration."""
    environment: str
    log_level: str
    bedrock_llm: BedrockLLMConfig
    opensearch: OpenSearchConfig
    stores: StoreConfig
    rate_limit: RateLimitConfig
    matcher: MatcherConfig
    portfolio: PortfolioConfig
    mcp: MCPConfig

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == 'production'


class ConfigurationError(Exception):
    """Raised when a required setting for an external service is missing."""
    pass


def load_config() -> AppConfig:
    """Load configuration from environment variables with defaults."""
    environment = os.getenv('ENVIRONMENT', 'development')

    # Bedrock configuration
    bedrock_llm_config = BedrockLLMConfig(region=os.getenv('BEDROCK_LLM_AWS_REGION', 'us-east-1'),
                                          model_id=os.getenv('BEDROCK_LLM_MODEL_ID', 'anthropic.claude-3-sonnet-20240229-v1:0'),
                                          max_tokens=int(os.getenv('BEDROCK_LLM_MAX_TOKENS', '1000')),
                                          temperature=float(os.getenv('BEDROCK_LLM_TEMPERATURE', '0.7')),
                                          retry_attempts=int(os.getenv('BEDROCK_LLM_RETRY_ATTEMPTS', '3')),
                                          retry_delay=float(os.getenv('BEDROCK_LLM_RETRY_DELAY', '1.0')))

    # Profile tables and counters live in OpenSearch unless the memory backend is selected
    opensearch_config = OpenSearchConfig(endpoint=os.getenv('OPENSEARCH_ENDPOINT', ''),
                                         port=int(os.getenv('OPENSEARCH_PORT', '443')),
                                         region=os.getenv('OPENSEARCH_AWS_REGION', 'us-east-1'),
                                         service=os.getenv('OPENSEARCH_SERVICE', 'aoss'),
                                         index_name=os.getenv('OPENSEARCH_INDEX', 'portfolio'))

    store_config = StoreConfig(profile_backend=os.getenv('PROFILE_STORE_BACKEND', 'opensearch').lower(),
                               profile_data_path=os.getenv('PROFILE_DATA_PATH', 'profile_data.json'),
                               counter_backend=os.getenv('COUNTER_STORE_BACKEND', 'memory').lower())

    rate_limit_config = RateLimitConfig(max_questions_per_hour=int(os.getenv('RATE_LIMIT_MAX_PER_HOUR', '10')),
                                        max_questions_per_day=int(os.getenv('RATE_LIMIT_MAX_PER_DAY', '20')))

    matcher_config = MatcherConfig(keyword_threshold=float(os.getenv('MATCHER_KEYWORD_THRESHOLD', '0.3')),
                                   similarity_threshold=float(os.getenv('MATCHER_SIMILARITY_THRESHOLD', '0.5')),
                                   reference_history_turns=int(os.getenv('REFERENCE_HISTORY_TURNS', '3')),
                                   history_limit=int(os.getenv('HISTORY_LIMIT', '10')))

    portfolio_config = PortfolioConfig(owner_name=os.getenv('PORTFOLIO_OWNER_NAME', '김하늬'))

    # MCP configuration
    mcp_config = MCPConfig(transport=os.getenv('MCP_TRANSPORT', 'sse'),
                           host=os.getenv('MCP_HOST', '127.0.0.1'),
                           port=int(os.getenv('MCP_PORT', '8000')))

    return AppConfig(environment=environment,
                     log_level=os.getenv('LOG_LEVEL', 'INFO'),
                     bedrock_llm=bedrock_llm_config,
                     opensearch=opensearch_config,
                     stores=store_config,
                     rate_limit=rate_limit_config,
                     matcher=matcher_config,
                     portfolio=portfolio_config,
                     mcp=mcp_config)


def validate_config(app_config: AppConfig) -> None:
    """Check that the selected backends have the settings they need.

    Args:
        app_config: AppConfig instance to validate

    Raises:
        ConfigurationError: If a required setting is missing
    """
    backends = {app_config.stores.profile_backend, app_config.stores.counter_backend}
    unknown = backends - {'opensearch', 'memory'}
    if unknown:
        raise ConfigurationError(f'Unknown store backend(s): {", ".join(sorted(unknown))}')

    if 'opensearch' in backends and not app_config.opensearch.endpoint:
        raise ConfigurationError('OPENSEARCH_ENDPOINT is required for the opensearch store backend')

    if app_config.stores.profile_backend == 'memory' and not os.path.exists(app_config.stores.profile_data_path):
        raise ConfigurationError(f'Profile data file not found: {app_config.stores.profile_data_path}')

    if not app_config.bedrock_llm.model_id:
        raise ConfigurationError('BEDROCK_LLM_MODEL_ID is required')


# Global configuration instance
config = load_config()
