"""
Central configuration for the gloss experiment harness.

Secrets (database URL, API keys, service-account JSON) are read from the
environment / .env file by experiments.clients; everything here is a plain
tunable.

Experiments are selected on the command line by registered name:
    "google-translate"   – reference glosses through Google Cloud Translation
    "gpt-standards"      – per-verse instructed translation with an OpenAI model
    "gemini-standards"   – same prompt contract sent to a Gemini model
"""

# ── Model (gpt-standards) ──────────────────────────────────────────────────────
MODEL = "gpt-4o-mini"          # override per run with --model
TEMPERATURE = 1
TOP_P = 1
MAX_COMPLETION_TOKENS = 2048

# ── Gemini (gemini-standards) ──────────────────────────────────────────────────
GEMINI_MODEL = "gemini-2.5-flash"

# ── Languages ──────────────────────────────────────────────────────────────────
# Reference language whose glosses are shown to the models / sent to Google.
DEFAULT_REF = "eng"

# ── Upstream API calls ─────────────────────────────────────────────────────────
# Total attempts per API request. 1 means a failure aborts the run at once;
# raise it to get exponential back-off between attempts.
API_ATTEMPTS = 1

# ── Output ─────────────────────────────────────────────────────────────────────
# Written in place of a translation when a model response for a verse
# cannot be decoded, so every word still gets exactly one cell.
DECODE_FAILURE = "#DECODE-ERROR"
