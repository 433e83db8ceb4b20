import logging
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

_DEFAULT_SECRET = "change-me-in-production"


class Settings(BaseSettings):
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    SECRET_KEY: str = _DEFAULT_SECRET
    DATABASE_URL: str = "sqlite:///./data/patrimonio.db"
    FIRST_USER_EMAIL: str = "admin@patrimonio.local"
    FIRST_USER_NAME: str = "Administrador"
    FIRST_USER_PASS: str = "admin12345"

    # OpenAI-compatible chat completions endpoint (OpenRouter by default)
    AI_API_KEY: str = ""
    AI_BASE_URL: str = "https://openrouter.ai/api/v1"
    AI_MODEL: str = "google/gemini-2.0-flash-001"
    AI_TIMEOUT: float = 60.0

    IMPORT_MAX_ROWS: int = 2000
    IMPORT_MAX_ERRORS: int = 10
    ERROR_CHANNEL_SIZE: int = 100

    class Config:
        env_file = ".env"


settings = Settings()

if settings.SECRET_KEY == _DEFAULT_SECRET:
    if settings.APP_ENV == "production":
        raise RuntimeError("SECRET_KEY deve ser definido em produção! Verifique o arquivo .env.")
    else:
        logger.warning("SECRET_KEY está com o valor padrão; defina-o no .env para produção!")

if settings.FIRST_USER_PASS == "admin12345":
    logger.warning("FIRST_USER_PASS está com o valor padrão; recomenda-se alterá-lo no .env")

if not settings.AI_API_KEY:
    logger.info("AI_API_KEY não definido; as análises de IA ficarão indisponíveis")
