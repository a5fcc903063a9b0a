"""
Central configuration — reads from .env file.

Every value here is a plain module attribute so tests (and callers that want a
per-process override) can patch config.X and have it picked up on the next
search. API keys are NOT read here — see key_store.py, which resolves them
once per search invocation.
"""
import os
from dotenv import load_dotenv

load_dotenv()

# ── Vision-Language Service ───────────────────────────────────────────────────
# Which SDK backs identification, verification and chat:
#   auto       → first provider whose key is present (google → openai → anthropic)
#   google     → Gemini via google-genai
#   openai     → GPT via openai
#   anthropic  → Claude via anthropic
VLM_PROVIDER: str = os.getenv("VLM_PROVIDER", "auto")

SEARCH_MODEL: str    = os.getenv("SEARCH_MODEL", "gemini-2.0-flash-001")
CHAT_MODEL: str      = os.getenv("CHAT_MODEL", "gemini-2.0-flash-001")
OPENAI_MODEL: str    = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
ANTHROPIC_MODEL: str = os.getenv("ANTHROPIC_MODEL", "claude-3-haiku-20240307")

# ── Search provider (SerpApi) ─────────────────────────────────────────────────
SERPAPI_URL: str      = os.getenv("SERPAPI_URL", "https://serpapi.com/search.json")
HTTP_TIMEOUT: float   = float(os.getenv("HTTP_TIMEOUT", "15"))
SEARCH_COUNTRY: str   = os.getenv("SEARCH_COUNTRY", "us")
SEARCH_LANGUAGE: str  = os.getenv("SEARCH_LANGUAGE", "en")
GOOGLE_DOMAIN: str    = os.getenv("GOOGLE_DOMAIN", "google.com")

# ── Result caps ───────────────────────────────────────────────────────────────
# Reverse-image matches considered per search (taken in provider order)
LENS_MAX_RESULTS: int     = int(os.getenv("LENS_MAX_RESULTS", "40"))
# Server-side cap and sort order for the keyword shopping fallback
SHOPPING_NUM_RESULTS: int = int(os.getenv("SHOPPING_NUM_RESULTS", "60"))
SHOPPING_SORT: str        = os.getenv("SHOPPING_SORT", "price_low")
# How many candidates are listed to the model during verification
VERIFY_MAX_ITEMS: int     = int(os.getenv("VERIFY_MAX_ITEMS", "40"))
# 0 = verify everything; N > 0 keeps only the first N candidates before verifying
VERIFY_INPUT_CAP: int     = int(os.getenv("VERIFY_INPUT_CAP", "0"))

# ── Query normalisation ───────────────────────────────────────────────────────
QUERY_MAX_WORDS: int = int(os.getenv("QUERY_MAX_WORDS", "10"))

# ── Candidate validation / URL resolution ─────────────────────────────────────
VIDEO_DOMAINS: tuple[str, ...] = tuple(
    d.strip().lower()
    for d in os.getenv("VIDEO_DOMAINS", "youtube.com,youtu.be,vimeo.com").split(",")
    if d.strip()
)
SHOPPING_SEARCH_URL: str = os.getenv(
    "SHOPPING_SEARCH_URL", "https://www.google.com/search?tbm=shop&q="
)
FALLBACK_URL: str = os.getenv("FALLBACK_URL", "https://google.com/shopping")

# ── Assistant ─────────────────────────────────────────────────────────────────
ASSISTANT_NAME: str = os.getenv("ASSISTANT_NAME", "Bargain Lens")
