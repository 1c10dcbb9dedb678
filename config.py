import os
import logging
from dotenv import load_dotenv

# Load .env file
load_dotenv()

logger = logging.getLogger(__name__)


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"{name}={raw!r} is not a number, using {default}")
        return default


class Settings:
    """
    Application settings and environment variables.
    """
    # Language model provider: "dashscope" (default) or "gemini"
    LLM_PROVIDER = os.getenv("LLM_PROVIDER", "dashscope").lower()

    # DashScope (Alibaba Bailian) credentials and endpoints
    DASHSCOPE_API_KEY = os.getenv("DASHSCOPE_API_KEY")
    DASHSCOPE_BASE_URL = os.getenv(
        "DASHSCOPE_BASE_URL",
        "https://dashscope.aliyuncs.com/api/v1/services/aigc/text-generation/generation",
    )
    DASHSCOPE_TTS_URL = os.getenv(
        "DASHSCOPE_TTS_URL",
        "https://dashscope-intl.aliyuncs.com/api/v1/services/aigc/multimodal-generation/generation",
    )
    TTS_MODEL = os.getenv("TTS_MODEL", "qwen3-tts-flash")

    # Gemini, only used when LLM_PROVIDER=gemini
    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
    GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

    # Coach feedback generation
    COACH_MODEL = os.getenv("COACH_MODEL", "qwen-plus")
    COACH_TEMPERATURE = _get_float("COACH_TEMPERATURE", 0.8)
    COACH_MAX_TOKENS = int(_get_float("COACH_MAX_TOKENS", 2000))
    # Upper bound for a single language model call (seconds)
    COACH_LLM_TIMEOUT = _get_float("COACH_LLM_TIMEOUT", 8.0)

    # Training plan generation is slower, give it more room
    PLAN_TEMPERATURE = _get_float("PLAN_TEMPERATURE", 0.7)
    PLAN_LLM_TIMEOUT = _get_float("PLAN_LLM_TIMEOUT", 60.0)

    # Supabase (account deletion)
    SUPABASE_URL = os.getenv("SUPABASE_URL")
    SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")
    SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

    # Timeout for every other outbound HTTP call (seconds)
    HTTP_TIMEOUT = _get_float("HTTP_TIMEOUT", 15.0)

    @classmethod
    def validate(cls):
        """
        Checks that critical variables are loaded.
        """
        missing = []
        if cls.LLM_PROVIDER == "gemini":
            if not cls.GEMINI_API_KEY:
                missing.append("GEMINI_API_KEY")
        elif not cls.DASHSCOPE_API_KEY:
            missing.append("DASHSCOPE_API_KEY")
        if not cls.SUPABASE_URL:
            missing.append("SUPABASE_URL")
        if not cls.SUPABASE_ANON_KEY:
            missing.append("SUPABASE_ANON_KEY")

        if missing:
            raise ValueError(f"Missing environment variables: {', '.join(missing)}")


# Validate settings (runs on import). Coach feedback still works without
# credentials because it falls back to pre-written sentences.
try:
    Settings.validate()
except ValueError as e:
    logger.warning(f"WARNING: {e}")
