from dotenv import load_dotenv
import logging
import os

load_dotenv()
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.routes import router as api_router
from app.core.config import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def validate_startup_config():
    """Validiert kritische Umgebungsvariablen beim Startup (fail-fast)."""
    errors = []

    # OPENAI_API_KEY wird nur für echte LLM-Calls benötigt
    if os.getenv("TEST_MODE") != "1" and not os.getenv("OPENAI_API_KEY"):
        errors.append(
            "OPENAI_API_KEY is not set. "
            "Set it in .env file or as environment variable, "
            "or run with TEST_MODE=1 to use the deterministic fake LLM."
        )

    if settings.rate_limit_per_day <= 0:
        errors.append("RATE_LIMIT_PER_DAY must be positive.")

    if errors:
        error_msg = "Startup validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ValueError(error_msg)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Validierung beim Startup
    validate_startup_config()
    logger.info(
        "%s gestartet (environment=%s, policy=%s)",
        settings.app_name,
        settings.environment,
        settings.policy_version,
    )
    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.include_router(api_router)


@app.get("/")
async def root():
    return {"message": "Copy Verification API running", "policy_version": settings.policy_version}
