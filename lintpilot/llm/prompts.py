"""
Oracle Prompts
==============
Centralised store for the four oracle request shapes and their payload
schemas.

Request Shapes:
    explain    — rule_id + sample source + sample messages -> Explanation
    fix        — one finding + numbered code window -> line span + code
    disable    — rule_id + live config text -> full replacement config
    follow-up  — free-form question + bundle context -> answer

Schema Delivery:
    Providers with native structured output (Claude Code) receive the JSON
    schema out of band. All others get it appended to the prompt via
    with_schema_hint(), because they can only be asked nicely.
"""
import json


# ---------------------------------------------------------------------------
# Payload Schemas
# ---------------------------------------------------------------------------
EXPLAIN_SCHEMA = {
    "type": "object",
    "properties": {
        "problem_description": {"type": "string"},
        "why_problem": {"type": "string"},
        "how_to_fix": {"type": "string"},
        "priority": {"type": "string", "enum": ["low", "medium", "high"]},
    },
    "required": ["problem_description", "why_problem", "how_to_fix", "priority"],
}

FIX_SCHEMA = {
    "type": "object",
    "properties": {
        "start_line": {"type": "integer"},
        "end_line": {"type": "integer"},
        "fixed_code": {"type": "string"},
        "explanation": {"type": "string"},
    },
    "required": ["start_line", "end_line", "fixed_code", "explanation"],
}

DISABLE_SCHEMA = {
    "type": "object",
    "properties": {
        "modified_config": {"type": "string"},
        "diff_description": {"type": "string"},
    },
    "required": ["modified_config", "diff_description"],
}

QUESTION_SCHEMA = {
    "type": "object",
    "properties": {
        "answer": {"type": "string"},
        "code_suggestion": {"type": "string"},
    },
    "required": ["answer"],
}


def schema_fields(schema: dict) -> tuple:
    """Field names a normalized payload may expose."""
    return tuple(schema.get("properties", {}).keys())


# ---------------------------------------------------------------------------
# System Prompt (HTTP providers only; CLI agents carry their own)
# ---------------------------------------------------------------------------
SYSTEM_PROMPT = (
    "You are an ESLint remediation assistant working on one rule at a time.\n"
    "\n"
    "HARD RULES:\n"
    "1. Change only the code needed to resolve the reported rule violation.\n"
    "2. Preserve indentation, comments and surrounding code exactly.\n"
    "3. Never rename, refactor or reorganise unrelated code.\n"
    "\n"
    "RESPONSE FORMAT: respond with ONLY one JSON object matching the requested "
    "fields. No prose, no markdown code fences."
)


# ---------------------------------------------------------------------------
# Prompt Builders
# ---------------------------------------------------------------------------
def build_explain_prompt(rule_id: str, sample_source: str, sample_messages: str) -> str:
    return (
        f"Rule ID: {rule_id}\n"
        "\n"
        "Sample code:\n"
        f"{sample_source or '(no source available)'}\n"
        "\n"
        "ESLint messages:\n"
        f"{sample_messages}\n"
        "\n"
        "Explain what this rule detects, why it matters, and how to fix it. "
        "Rate the priority as low, medium or high."
    )


def build_fix_prompt(
    rule_id: str,
    file_path: str,
    line: int,
    message: str,
    code_context: str,
) -> str:
    return (
        "Fix this ESLint rule violation.\n"
        "\n"
        f"Rule: {rule_id}\n"
        f"File: {file_path}\n"
        f"Message: {message}\n"
        f"Reported line: {line}\n"
        "\n"
        "Code context (each line is prefixed with its line number and a tab):\n"
        f"{code_context}\n"
        "\n"
        "## Instructions\n"
        "1. Identify the exact range of lines that must change.\n"
        "2. start_line and end_line are the inclusive range to replace.\n"
        "3. fixed_code replaces that whole range; keep the original indentation "
        "and do NOT include line-number prefixes."
    )


def build_disable_prompt(rule_id: str, config_content: str) -> str:
    return (
        "Disable an ESLint rule in this flat config file.\n"
        "\n"
        f"Rule to disable: {rule_id}\n"
        "\n"
        "Current config file:\n"
        f"{config_content}\n"
        "\n"
        f"Follow the existing rules structure and add '{rule_id}': 'off' in the "
        "appropriate place. modified_config must be the COMPLETE new file; "
        "diff_description summarises the change in one line."
    )


def build_question_prompt(question: str, context: str) -> str:
    return (
        f"{context}\n"
        "\n"
        f"User question: {question}\n"
        "\n"
        "Answer concisely. Include code_suggestion only if code helps."
    )


def with_schema_hint(prompt: str, schema: dict) -> str:
    """Append a JSON response-shape hint for providers without schema support."""
    example = {
        name: prop.get("type", "string")
        for name, prop in schema.get("properties", {}).items()
    }
    return (
        f"{prompt}\n"
        "\n"
        "Respond in JSON format with these fields:\n"
        f"{json.dumps(example, indent=2)}"
    )
