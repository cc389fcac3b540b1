import os
import logging
from dotenv import load_dotenv

load_dotenv()

# Configure logging
DEBUG_LOGGING = os.getenv("DEBUG_LOGGING", "false").lower() in ("true", "1", "yes")
LOG_LEVEL = logging.DEBUG if DEBUG_LOGGING else logging.INFO

logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger("video-manual")


def _int_env(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}, using {default}")
        return default


# YouTube Data API
YOUTUBE_API_KEY = os.getenv("YOUTUBE_API_KEY", "")
YOUTUBE_RELEVANCE_LANGUAGE = os.getenv("YOUTUBE_RELEVANCE_LANGUAGE", "ja")
YOUTUBE_MAX_RESULTS = max(1, min(_int_env("YOUTUBE_MAX_RESULTS", 50), 50))
YOUTUBE_TIMEOUT_SECONDS = _int_env("YOUTUBE_TIMEOUT_SECONDS", 15)

# Exported manual
MANUAL_TITLE = os.getenv("MANUAL_TITLE", "動画マニュアル")
MANUAL_FILENAME = os.getenv("MANUAL_FILENAME", "動画マニュアル.html")

if not YOUTUBE_API_KEY:
    logger.warning("YOUTUBE_API_KEY is not set; every search will fail until it is provided")
