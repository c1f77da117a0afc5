from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    database_url: str = "sqlite:///./clinic_scheduler.db"
    jwt_secret_key: str = "your-secret-key-change-in-production"  # Default for development
    jwt_algorithm: str = "HS256"

    # Comma-separated list, e.g. "http://localhost:3000,https://clinic.example.com"
    cors_origins: str = ""
    log_level: str = "INFO"

    class Config:
        env_file = ".env"

    @property
    def allow_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

settings = Settings()
