from typing import Optional
from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    url: Optional[str] = Field(default=None, alias="DATABASE_URL")
    host: str = Field(default="localhost", alias="POSTGRES_HOST")
    port: int = Field(default=5432, alias="POSTGRES_DB_PORT")
    db_name: str = Field(default="study_kit", alias="POSTGRES_DB_NAME")
    user: str = Field(default="postgres", alias="POSTGRES_DB_USER")
    password: str = Field(default="postgres", alias="POSTGRES_DB_PASSWORD")
    echo: bool = Field(default=False, alias="DB_ECHO")
    auto_create: bool = Field(default=False, alias="DB_AUTO_CREATE")

    @computed_field
    def connection_string(self) -> str:
        if self.url:
            return self.url
        return f"postgresql+asyncpg://{self.user}:{self.password}@{self.host}:{self.port}/{self.db_name}"


class JWTSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    issuer: str = Field(default="https://auth.example.com", alias="JWT_ISSUER")
    application_id: str = Field(default="study-kit", alias="JWT_APPLICATION_ID")
    token_lifetime_seconds: int = Field(
        default=3600, alias="JWT_TOKEN_LIFETIME_SECONDS"
    )
    key_file: str = Field(default="jwt_rsa_key.pem", alias="JWT_KEY_FILE")


class GenerationSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # Model provider selection: "openai" (any OpenAI-compatible endpoint) or "google"
    provider: str = Field(default="openai", alias="MODEL_PROVIDER")
    api_key: Optional[str] = Field(default=None, alias="GENERATION_API_KEY")
    gemini_api_key: Optional[str] = Field(default=None, alias="GEMINI_API_KEY")
    base_url: str = Field(
        default="https://api.groq.com/openai/v1", alias="GENERATION_BASE_URL"
    )

    # Model selector tiers
    auto_model: str = Field(
        default="llama-3.3-70b-versatile", alias="GENERATION_MODEL_AUTO"
    )
    fast_model: str = Field(
        default="llama-3.1-8b-instant", alias="GENERATION_MODEL_FAST"
    )
    best_model: str = Field(
        default="llama-3.3-70b-versatile", alias="GENERATION_MODEL_BEST"
    )

    timeout_seconds: float = Field(default=60.0, alias="GENERATION_TIMEOUT_SECONDS")
    max_retries: int = Field(default=0, alias="GENERATION_MAX_RETRIES")
    retry_backoff_seconds: float = Field(
        default=0.5, alias="GENERATION_RETRY_BACKOFF_SECONDS"
    )
    max_count: int = Field(default=50, alias="GENERATION_MAX_COUNT")


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    name: str = Field(default="study-kit", alias="APP_NAME")
    version: str = Field(default="v1", alias="API_VERSION")
    port: int = Field(default=9000, alias="APP_PORT")
    mode: str = Field(default="prod", alias="MODE")
    jwt_secret: str = Field(alias="JWT_SECRET")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"], alias="CORS_ORIGINS"
    )

    @computed_field
    def is_production(self) -> bool:
        return self.mode != "dev"

    @computed_field
    def is_testing(self) -> bool:
        return self.mode == "test"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    app: AppSettings = Field(default_factory=lambda: AppSettings())
    database: DatabaseSettings = Field(default_factory=lambda: DatabaseSettings())
    jwt: JWTSettings = Field(default_factory=lambda: JWTSettings())
    generation: GenerationSettings = Field(
        default_factory=lambda: GenerationSettings()
    )


settings = Settings()
