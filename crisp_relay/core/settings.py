# file: crisp_relay/core/settings.py

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    CRISP_API_BASE_URL: str = "https://api.crisp.chat/v1"
    CRISP_IDENTIFIER: str = ""
    CRISP_KEY: str = ""
    CRISP_TIER: str = "plugin"
    CRISP_TIMEOUT_SECONDS: int = 15

    BACKEND_URL: str = "http://localhost:3001"
    BACKEND_RELAY_PATH: str = "/api/crisp/rtm"
    BACKEND_TIMEOUT_SECONDS: int = 30

    DEBOUNCE_PAUSE_MS: int = 3000
    CLARIFICATION_MESSAGE: str = (
        "It looks like you sent several messages in a row. "
        "Could you please resend your question as a single message?"
    )

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()
