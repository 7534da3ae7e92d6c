"""
Configuration
=============
Loads environment variables from .env file using python-dotenv.

Environment Variables:
    LINTPILOT_PROVIDER        — Default oracle provider (default: claude-code)
    LINTPILOT_MODEL           — Default model override (empty = provider default)
    ORACLE_TIMEOUT_SECONDS    — Hard timeout for a single oracle call (default: 60)
    ANALYZER_TIMEOUT_SECONDS  — Hard timeout for one ESLint run (default: 300)
    ESLINT_COMMAND            — Command prefix used to invoke ESLint (default: npx eslint)
    MAX_SKIP_ATTEMPTS         — Automated mode retry budget per (file, rule) (default: 2)
    CONTEXT_WINDOW_LINES      — Lines shown above/below a finding (default: 10)
    GEMINI_API_KEY            — Google Gemini key for the HTTP oracle
    GROQ_API_KEY              — Groq key for the HTTP oracle
    OPENROUTER_API_KEY        — OpenRouter key for the HTTP oracle
    MAX_FINISHED_RUNS         — Finished HTTP runs kept for /api/results (default: 50)
    LOG_DIR                   — Directory for the daily log file (default: logs)
    LOG_TO_FILE               — HTTP service also logs to LOG_DIR (default: false)
    API_HOST / API_PORT       — Bind address of the HTTP service

Timeout Philosophy:
    An oracle call that exceeds ORACLE_TIMEOUT_SECONDS is treated exactly like
    a malformed reply: the affected part of the fix bundle degrades, the loop
    keeps going. Only the analyzer timeout is fatal, because without findings
    there is nothing to iterate on.
"""
import os
from dotenv import load_dotenv

load_dotenv()

LINTPILOT_PROVIDER = os.getenv("LINTPILOT_PROVIDER", "claude-code")
LINTPILOT_MODEL = os.getenv("LINTPILOT_MODEL", "")

ORACLE_TIMEOUT_SECONDS = float(os.getenv("ORACLE_TIMEOUT_SECONDS", 60))
ANALYZER_TIMEOUT_SECONDS = float(os.getenv("ANALYZER_TIMEOUT_SECONDS", 300))

ESLINT_COMMAND = os.getenv("ESLINT_COMMAND", "npx eslint")

# Automated mode: a (file, rule) pair is dropped after this many skips
MAX_SKIP_ATTEMPTS = int(os.getenv("MAX_SKIP_ATTEMPTS", 2))

# Lines of context shown to the oracle on each side of a finding
CONTEXT_WINDOW_LINES = int(os.getenv("CONTEXT_WINDOW_LINES", 10))

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY")

MAX_FINISHED_RUNS = int(os.getenv("MAX_FINISHED_RUNS", 50))

LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "false").lower() == "true"

API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", 8000))
