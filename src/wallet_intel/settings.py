from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    solscan_api_url: str = Field(default='https://api.solscan.io', alias='SOLSCAN_API_URL')
    solscan_api_key: str | None = Field(default=None, alias='SOLSCAN_API_KEY')
    solana_rpc_url: str = Field(default='https://api.mainnet-beta.solana.com', alias='SOLANA_RPC_URL')
    token_list_url: str = Field(
        default='https://cdn.jsdelivr.net/gh/solana-labs/token-list@main/src/tokens/solana.tokenlist.json',
        alias='TOKEN_LIST_URL',
    )
    solana_signature_limit: int = Field(default=1000, alias='SOLANA_SIGNATURE_LIMIT')
    request_timeout_seconds: float = Field(default=10, alias='REQUEST_TIMEOUT_SECONDS')
    solana_rpc_retries: int = Field(default=2, alias='SOLANA_RPC_RETRIES')
    metadata_failure_threshold: int = Field(default=3, alias='METADATA_FAILURE_THRESHOLD')
    rate_limit_window_seconds: float = Field(default=60, alias='RATE_LIMIT_WINDOW_SECONDS')
    rate_limit_max_requests: int = Field(default=10, alias='RATE_LIMIT_MAX_REQUESTS')
    log_level: str = Field(default='INFO', alias='LOG_LEVEL')
    dd_api_key: str | None = Field(default=None, alias='DD_API_KEY')
    dd_service: str = Field(default='wallet-intel', alias='DD_SERVICE')
    dd_env: str = Field(default='dev', alias='DD_ENV')
    dd_version: str = Field(default='0.1.0', alias='DD_VERSION')
    dd_site: str = Field(default='datadoghq.com', alias='DD_SITE')
    dd_send_logs: bool = Field(default=True, alias='DD_SEND_LOGS')
    dd_trace_enabled: bool = Field(default=False, alias='DD_TRACE_ENABLED')
    dd_trace_agent_url: str | None = Field(default=None, alias='DD_TRACE_AGENT_URL')


settings = Settings()
