from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "postgresql://solar:solar@db:5432/solar"
    APP_ENV: str = "development"
    SECRET_KEY: str = "changeme-secret-key"

    # Comma-separated allowed origins, or "*" to allow all.
    # Example: "https://ops.example.com,https://admin.example.com"
    CORS_ORIGINS: str = "*"

    # Empty means DEBUG in development, INFO everywhere else.
    LOG_LEVEL: str = ""

    # Upper bound on projects compared against one baseline.
    COMPARISON_MAX_PROJECTS: int = 50

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() == "production"


settings = Settings()
