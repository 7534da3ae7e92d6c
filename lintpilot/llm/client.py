"""
Oracle Client
=============
Asynchronous wrappers around the generative assistant, treated as a
black-box request/response oracle.

Providers:
    - ClaudeCodeOracle: `claude -p` with native JSON-schema output
    - CursorOracle:     `cursor agent -p`, schema described in the prompt
    - HttpOracle:       Gemini REST / OpenAI-compatible APIs via httpx

Session Handling:
    Every request takes the current session handle as an argument and
    returns the (possibly refreshed) handle in OracleReply.session_id.
    No client stores the handle; SessionManager owns it.

Failure Semantics:
    Each call is bounded by a hard timeout. Timeouts, process or HTTP
    errors, error envelopes and unparseable replies all come back as
    OracleReply(success=False, error=...). Nothing raises to the caller.
"""
import asyncio
import json
import logging
import shutil
from dataclasses import dataclass
from typing import List, Optional

import httpx

from lintpilot.core.config import ORACLE_TIMEOUT_SECONDS
from lintpilot.core.errors import LintPilotError
from lintpilot.llm.normalizer import normalize_reply
from lintpilot.llm.prompts import (
    DISABLE_SCHEMA,
    EXPLAIN_SCHEMA,
    FIX_SCHEMA,
    QUESTION_SCHEMA,
    SYSTEM_PROMPT,
    build_disable_prompt,
    build_explain_prompt,
    build_fix_prompt,
    build_question_prompt,
    schema_fields,
    with_schema_hint,
)
from lintpilot.llm.router import ProviderConfig, get_provider_config, resolve_model
from lintpilot.models.oracle_reply import OracleReply

logger = logging.getLogger(__name__)

_MAX_DEBUG_CHARS = 1000


@dataclass
class ProviderStatus:
    available: bool
    details: str
    version: str = ""


class OracleError(LintPilotError):
    """Raised inside a provider when a call cannot produce a reply envelope."""


# ---------------------------------------------------------------------------
# Base Client
# ---------------------------------------------------------------------------
class OracleClient:
    """
    Shared request logic for all providers.

    Subclasses implement _invoke(prompt, schema, session_id) returning the
    raw reply envelope (dict or text) and the session handle it carried.
    """

    supports_schema = False

    def __init__(
        self,
        config: ProviderConfig,
        model: Optional[str] = None,
        timeout: float = ORACLE_TIMEOUT_SECONDS,
    ) -> None:
        self.config = config
        self.name = config.name
        self.model = resolve_model(config, model)
        self.timeout = timeout

    async def _invoke(self, prompt: str, schema: dict, session_id: Optional[str]):
        raise NotImplementedError

    async def _call(self, prompt: str, schema: dict, session_id: Optional[str] = None) -> OracleReply:
        if not self.supports_schema:
            prompt = with_schema_hint(prompt, schema)

        try:
            envelope, new_session = await asyncio.wait_for(
                self._invoke(prompt, schema, session_id), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.warning("%s: oracle call timed out after %.0fs", self.name, self.timeout)
            return OracleReply(error=f"Timed out after {self.timeout:.0f}s", session_id=session_id)
        except (OracleError, OSError, httpx.HTTPError, ValueError) as exc:
            logger.warning("%s: oracle call failed: %s", self.name, exc)
            return OracleReply(error=str(exc), session_id=session_id)

        normalized = normalize_reply(envelope, schema_fields(schema))
        session = new_session or session_id
        if not normalized.success:
            logger.warning("%s: unusable reply (%s)", self.name, normalized.error)
            return OracleReply(error=normalized.error, session_id=session)

        logger.debug("%s: parsed payload %s", self.name, json.dumps(normalized.payload)[:_MAX_DEBUG_CHARS])
        return OracleReply(success=True, data=normalized.payload, session_id=session)

    # -------------------------------------------------------------------
    # Request shapes
    # -------------------------------------------------------------------
    async def explain_rule(
        self, rule_id: str, sample_source: str, sample_messages: str,
        session_id: Optional[str] = None,
    ) -> OracleReply:
        prompt = build_explain_prompt(rule_id, sample_source, sample_messages)
        return await self._call(prompt, EXPLAIN_SCHEMA, session_id)

    async def generate_fix(
        self, rule_id: str, file_path: str, line: int, message: str, code_context: str,
        session_id: Optional[str] = None,
    ) -> OracleReply:
        prompt = build_fix_prompt(rule_id, file_path, line, message, code_context)
        return await self._call(prompt, FIX_SCHEMA, session_id)

    async def generate_disable_config(
        self, rule_id: str, config_content: str,
        session_id: Optional[str] = None,
    ) -> OracleReply:
        prompt = build_disable_prompt(rule_id, config_content)
        return await self._call(prompt, DISABLE_SCHEMA, session_id)

    async def ask_question(
        self, question: str, context: str,
        session_id: Optional[str] = None,
    ) -> OracleReply:
        prompt = build_question_prompt(question, context)
        return await self._call(prompt, QUESTION_SCHEMA, session_id)

    # -------------------------------------------------------------------
    # Provider management
    # -------------------------------------------------------------------
    async def is_available(self) -> bool:
        raise NotImplementedError

    async def status(self) -> ProviderStatus:
        raise NotImplementedError

    async def login(self) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        """Release provider resources (no-op for CLI providers)."""


# ---------------------------------------------------------------------------
# CLI Providers
# ---------------------------------------------------------------------------
class CLIOracle(OracleClient):
    """Base for providers driven through a local agent CLI."""

    version_args: List[str] = ["--version"]
    login_args: List[str] = []

    def _build_command(self, schema: dict, session_id: Optional[str]) -> List[str]:
        raise NotImplementedError

    async def _invoke(self, prompt: str, schema: dict, session_id: Optional[str]):
        cmd = self._build_command(schema, session_id)
        logger.debug("%s command: %s", self.name, " ".join(cmd)[:200])
        logger.debug("%s prompt length: %d bytes", self.name, len(prompt))

        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout_b, stderr_b = await proc.communicate(prompt.encode("utf-8"))
        except asyncio.CancelledError:
            proc.kill()
            await proc.wait()
            raise

        stdout = stdout_b.decode("utf-8", errors="replace").strip()
        stderr = stderr_b.decode("utf-8", errors="replace").strip()
        logger.debug("%s raw response (%d bytes): %s", self.name, len(stdout), stdout[:_MAX_DEBUG_CHARS])

        if not stdout:
            raise OracleError(stderr or f"{self.config.binary} exited with status {proc.returncode}")

        try:
            envelope = json.loads(stdout)
        except json.JSONDecodeError:
            if proc.returncode != 0:
                raise OracleError(stderr or f"{self.config.binary} exited with status {proc.returncode}")
            return stdout, None

        session = envelope.get("session_id") if isinstance(envelope, dict) else None
        return envelope, session

    async def _run_short(self, args: List[str], timeout: float = 10.0) -> str:
        proc = await asyncio.create_subprocess_exec(
            self.config.binary, *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise OracleError(f"{self.config.binary} {' '.join(args)} timed out")
        if proc.returncode != 0:
            raise OracleError(f"{self.config.binary} {' '.join(args)} exited with {proc.returncode}")
        return stdout.decode("utf-8", errors="replace").strip()

    async def is_available(self) -> bool:
        return shutil.which(self.config.binary) is not None

    async def status(self) -> ProviderStatus:
        if not await self.is_available():
            return ProviderStatus(False, f"{self.config.binary} CLI not found. Install it first.")
        try:
            output = await self._run_short(self.version_args)
        except (OracleError, OSError) as exc:
            return ProviderStatus(False, str(exc))
        return ProviderStatus(True, f"{self.config.binary} CLI is available", version=output)

    async def login(self) -> None:
        if not await self.is_available():
            raise OracleError(f"{self.config.binary} CLI not found. Install it first.")
        # Inherit the terminal: login flows are interactive
        proc = await asyncio.create_subprocess_exec(self.config.binary, *self.login_args)
        code = await proc.wait()
        if code != 0:
            raise OracleError(f"Login exited with status {code}")


class ClaudeCodeOracle(CLIOracle):
    supports_schema = True
    login_args = ["setup-token"]

    def _build_command(self, schema: dict, session_id: Optional[str]) -> List[str]:
        cmd = [
            self.config.binary, "-p",
            "--model", self.model,
            "--output-format", "json",
            "--json-schema", json.dumps(schema),
        ]
        if session_id:
            cmd += ["--resume", session_id]
        return cmd


class CursorOracle(CLIOracle):
    version_args = ["agent", "status"]
    login_args = ["agent", "login"]

    def _build_command(self, schema: dict, session_id: Optional[str]) -> List[str]:
        cmd = [
            self.config.binary, "agent", "-p",
            "--model", self.model,
            "--output-format", "json",
        ]
        if session_id:
            cmd += ["--resume", session_id]
        return cmd


# ---------------------------------------------------------------------------
# HTTP Providers
# ---------------------------------------------------------------------------
class HttpOracle(OracleClient):
    """
    Stateless oracle over a hosted LLM API.

    The reply text is wrapped as {"result": text} so it goes through the
    same normalizer as CLI envelopes.
    """

    def __init__(self, config: ProviderConfig, model: Optional[str] = None,
                 timeout: float = ORACLE_TIMEOUT_SECONDS) -> None:
        super().__init__(config, model, timeout)
        self._http: Optional[httpx.AsyncClient] = None

    async def _get_http(self) -> httpx.AsyncClient:
        """Lazy-initialise the HTTP client."""
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._http

    async def close(self) -> None:
        if self._http and not self._http.is_closed:
            await self._http.aclose()
            self._http = None

    async def _invoke(self, prompt: str, schema: dict, session_id: Optional[str]):
        if not self.config.api_key:
            raise OracleError(f"No API key configured for {self.name}")
        if self.name == "gemini":
            text = await self._call_gemini(prompt)
        else:
            text = await self._call_openai_compatible(prompt)
        logger.debug("%s raw response: %s", self.name, text[:_MAX_DEBUG_CHARS])
        return {"result": text}, None

    async def _call_gemini(self, prompt: str) -> str:
        http = await self._get_http()
        url = f"{self.config.base_url}/models/{self.model}:generateContent"
        payload = {
            "system_instruction": {"parts": [{"text": SYSTEM_PROMPT}]},
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": 0.1, "maxOutputTokens": 8192},
        }
        resp = await http.post(url, json=payload, params={"key": self.config.api_key})
        resp.raise_for_status()
        data = resp.json()

        try:
            return data["candidates"][0]["content"]["parts"][0].get("text", "")
        except (IndexError, KeyError, TypeError):
            return ""

    async def _call_openai_compatible(self, prompt: str) -> str:
        http = await self._get_http()
        url = f"{self.config.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.1,
            "max_tokens": 8192,
        }
        resp = await http.post(url, json=payload, headers=headers)
        resp.raise_for_status()
        data = resp.json()

        try:
            return data["choices"][0]["message"].get("content") or ""
        except (IndexError, KeyError, TypeError):
            return ""

    async def is_available(self) -> bool:
        return bool(self.config.api_key)

    async def status(self) -> ProviderStatus:
        if self.config.api_key:
            return ProviderStatus(True, f"API key configured for {self.name}")
        return ProviderStatus(False, f"No API key configured for {self.name} (set it in .env)")

    async def login(self) -> None:
        raise OracleError(
            f"{self.name} uses an API key; set {self.name.upper()}_API_KEY in your .env file"
        )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------
_CLIENTS = {
    "claude-code": ClaudeCodeOracle,
    "cursor-cli": CursorOracle,
}


def create_oracle(
    provider: str,
    model: Optional[str] = None,
    timeout: float = ORACLE_TIMEOUT_SECONDS,
) -> OracleClient:
    """
    Create an oracle client by provider name.

    Raises
    ------
    ValueError
        If the provider is unknown.
    """
    config = get_provider_config(provider)
    cls = _CLIENTS.get(provider, HttpOracle)
    return cls(config, model=model, timeout=timeout)
