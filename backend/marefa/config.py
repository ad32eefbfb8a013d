# marefa/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Settings(BaseModel):
    # General app settings
    APP_NAME: str = "Marefa Source API"
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))

    # CORS origins for frontend (comma separated override)
    CORS_ORIGINS: list[str] = [
        o.strip() for o in os.getenv(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000",
        ).split(",") if o.strip()
    ]

    # Session cookie
    session_secret: str = os.getenv("SESSION_SECRET", "marefasource-secret")
    session_max_age_days: int = int(os.getenv("SESSION_MAX_AGE_DAYS", "30"))
    cookie_secure: bool = _env_flag("COOKIE_SECURE", "true" if os.getenv("ENV") == "production" else "false")

    # OpenAI Chat Completions (assistant replies)
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    openai_api_url: str = os.getenv("OPENAI_API_URL", "https://api.openai.com/v1/chat/completions")
    openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4o")
    llm_temperature: float = float(os.getenv("LLM_TEMPERATURE", "0.7"))
    llm_max_tokens: int = int(os.getenv("LLM_MAX_TOKENS", "1000"))
    llm_timeout_seconds: float = float(os.getenv("LLM_TIMEOUT_SECONDS", "60"))

    # Stripe billing
    stripe_secret_key: str | None = os.getenv("STRIPE_SECRET_KEY")
    stripe_publishable_key: str | None = os.getenv("STRIPE_PUBLISHABLE_KEY")
    stripe_webhook_secret: str | None = os.getenv("STRIPE_WEBHOOK_SECRET")
    stripe_api_url: str = os.getenv("STRIPE_API_URL", "https://api.stripe.com")
    stripe_api_version: str = os.getenv("STRIPE_API_VERSION", "2023-10-16")
    stripe_webhook_tolerance_seconds: int = int(os.getenv("STRIPE_WEBHOOK_TOLERANCE_SECONDS", "300"))
    stripe_price_basic: str = os.getenv("STRIPE_PRICE_BASIC", "price_basic")
    stripe_price_research: str = os.getenv("STRIPE_PRICE_RESEARCH", "price_research")
    stripe_price_teams: str = os.getenv("STRIPE_PRICE_TEAMS", "price_teams")
    # Tier is granted when the subscription is created, before payment is confirmed.
    # Turn off to grant the tier only from the subscription webhook.
    optimistic_tier_upgrade: bool = _env_flag("OPTIMISTIC_TIER_UPGRADE", "true")

    # Quotas
    free_message_limit: int = int(os.getenv("FREE_MESSAGE_LIMIT", "50"))
    guest_message_limit: int = int(os.getenv("GUEST_MESSAGE_LIMIT", "5"))

    # Research document uploads
    upload_dir: str = os.getenv("UPLOAD_DIR", "uploads")
    max_upload_bytes: int = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

    @property
    def plan_prices(self) -> dict[str, str]:
        """Plan name -> Stripe price id."""
        return {
            "basic": self.stripe_price_basic,
            "research": self.stripe_price_research,
            "teams": self.stripe_price_teams,
        }


settings = Settings()  # Instantiate configuration
