"""
Provider Registry
=================
Static description of every oracle provider lintpilot can talk to.

Provider Kinds:
    cli   — a local agent CLI driven through a subprocess (Claude Code,
            Cursor). Supports conversation resume via a session handle.
    http  — a hosted LLM API reached with httpx (Gemini, Groq, OpenRouter).
            Stateless: no session handle is ever returned.

The registry drives provider validation, default model choice and the
`lintpilot models` listing.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from lintpilot.core.config import GEMINI_API_KEY, GROQ_API_KEY, OPENROUTER_API_KEY

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Provider Configuration
# ---------------------------------------------------------------------------
@dataclass
class ProviderConfig:
    """Configuration for a single oracle provider."""
    name: str
    kind: str
    default_model: str
    models: List[Tuple[str, str]] = field(default_factory=list)
    api_key: str = ""
    base_url: str = ""
    binary: str = ""

    def model_names(self) -> List[str]:
        return [name for name, _ in self.models]


CLAUDE_CODE_CONFIG = ProviderConfig(
    name="claude-code",
    kind="cli",
    binary="claude",
    default_model="haiku",
    models=[
        ("haiku", "Claude Haiku (default, fast)"),
        ("sonnet", "Claude Sonnet (balanced)"),
        ("opus", "Claude Opus (powerful)"),
    ],
)

CURSOR_CLI_CONFIG = ProviderConfig(
    name="cursor-cli",
    kind="cli",
    binary="cursor",
    default_model="claude-4.5-sonnet",
    models=[
        ("claude-4.5-sonnet", "Claude 4.5 Sonnet (default)"),
        ("claude-4-opus", "Claude 4 Opus"),
        ("gpt-4.1", "GPT-4.1"),
        ("gpt-4o", "GPT-4o"),
        ("o3", "OpenAI o3"),
        ("o4-mini", "OpenAI o4-mini"),
        ("gemini-2.5-pro", "Gemini 2.5 Pro"),
        ("gemini-2.5-flash", "Gemini 2.5 Flash"),
    ],
)

GEMINI_CONFIG = ProviderConfig(
    name="gemini",
    kind="http",
    api_key=GEMINI_API_KEY or "",
    base_url="https://generativelanguage.googleapis.com/v1beta",
    default_model="gemini-2.0-flash",
    models=[
        ("gemini-2.0-flash", "Gemini 2.0 Flash (default)"),
        ("gemini-2.5-flash", "Gemini 2.5 Flash"),
        ("gemini-2.5-pro", "Gemini 2.5 Pro"),
    ],
)

GROQ_CONFIG = ProviderConfig(
    name="groq",
    kind="http",
    api_key=GROQ_API_KEY or "",
    base_url="https://api.groq.com/openai/v1",
    default_model="llama-3.3-70b-versatile",
    models=[
        ("llama-3.3-70b-versatile", "Llama 3.3 70B (default)"),
        ("llama-3.1-8b-instant", "Llama 3.1 8B Instant"),
    ],
)

OPENROUTER_CONFIG = ProviderConfig(
    name="openrouter",
    kind="http",
    api_key=OPENROUTER_API_KEY or "",
    base_url="https://openrouter.ai/api/v1",
    default_model="stepfun/step-3.5-flash:free",
    models=[
        ("stepfun/step-3.5-flash:free", "StepFun 3.5 Flash (default, free)"),
    ],
)


PROVIDERS: Dict[str, ProviderConfig] = {
    cfg.name: cfg
    for cfg in (CLAUDE_CODE_CONFIG, CURSOR_CLI_CONFIG, GEMINI_CONFIG, GROQ_CONFIG, OPENROUTER_CONFIG)
}


def is_valid_provider(name: str) -> bool:
    return name in PROVIDERS


def get_provider_config(name: str) -> ProviderConfig:
    """
    Look up a provider by name.

    Raises
    ------
    ValueError
        If the provider is unknown.
    """
    try:
        return PROVIDERS[name]
    except KeyError:
        raise ValueError(
            f"Unknown provider: {name} (available: {', '.join(PROVIDERS)})"
        ) from None


def resolve_model(provider: Union[str, ProviderConfig], model: Optional[str] = None) -> str:
    """Return the requested model, or the default of the given provider or config."""
    if model:
        return model
    if isinstance(provider, ProviderConfig):
        return provider.default_model
    return get_provider_config(provider).default_model
