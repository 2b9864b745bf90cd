from dotenv import load_dotenv
load_dotenv()

import os


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# ---------------- OpenAI ----------------
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
VISION_MODEL = os.getenv("VISION_MODEL", "gpt-4o")
SELF_CHECK_MODEL = os.getenv("SELF_CHECK_MODEL", "gpt-4o-mini")
STRATEGY_MODEL = os.getenv("STRATEGY_MODEL", "gpt-4o-mini")
OPENAI_TIMEOUT_SECONDS = float(os.getenv("OPENAI_TIMEOUT_SECONDS", "60"))
OPENAI_MAX_RETRIES = max(0, int(os.getenv("OPENAI_MAX_RETRIES", "0")))

# ---------------- Pipeline ----------------
STRICT_EXTRACTION = _flag("STRICT_EXTRACTION", "true")
SELF_CHECK_ENABLED = _flag("SELF_CHECK_ENABLED", "true")
SELF_CHECK_SEND_IMAGE = _flag("SELF_CHECK_SEND_IMAGE", "false")

# ---------------- Upload ----------------
MAX_IMAGE_WIDTH = max(1, int(os.getenv("MAX_IMAGE_WIDTH", "1600")))
IMAGE_QUALITY = min(95, max(1, int(os.getenv("IMAGE_QUALITY", "90"))))
PORT = int(os.getenv("PORT", "3000"))

print("DEBUG[config]: OPENAI_API_KEY present:", bool(OPENAI_API_KEY))
print("DEBUG[config]: VISION_MODEL =", VISION_MODEL, "SELF_CHECK_MODEL =", SELF_CHECK_MODEL, "STRATEGY_MODEL =", STRATEGY_MODEL)
print("DEBUG[config]: STRICT_EXTRACTION =", STRICT_EXTRACTION, "SELF_CHECK_ENABLED =", SELF_CHECK_ENABLED, "SELF_CHECK_SEND_IMAGE =", SELF_CHECK_SEND_IMAGE)
print("DEBUG[config]: OPENAI_TIMEOUT_SECONDS =", OPENAI_TIMEOUT_SECONDS, "OPENAI_MAX_RETRIES =", OPENAI_MAX_RETRIES)
