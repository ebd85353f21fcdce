from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeminiConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="AGRODETECT_GEMINI__",
        env_file=".env",
        extra="ignore",
    )

    api_key: str = Field(
        "",
        validation_alias=AliasChoices("AGRODETECT_GEMINI__API_KEY", "GEMINI_API_KEY"),
    )
    base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    model: str = "gemini-3-flash-preview"
    # None waits for the service (or the transport) indefinitely.
    request_timeout_s: float | None = None


class WorkflowConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="AGRODETECT_WORKFLOW__",
        env_file=".env",
        extra="ignore",
    )

    # When False an unparseable reply becomes an empty result instead of a failure.
    strict_parse: bool = False


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    gemini: GeminiConfig = GeminiConfig()
    workflow: WorkflowConfig = WorkflowConfig()


settings = Settings()
