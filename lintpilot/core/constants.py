"""
Constants
Centralised storage for config candidates, sampling caps, placeholder texts
and suppression comment templates.
"""
VERSION = "0.3.0"
ARROW = "→"

# Lint config candidates, searched in order relative to the project root
CONFIG_CANDIDATES = (
    "eslint.config.js",
    "eslint.config.mjs",
    "eslint.config.cjs",
    "packages/eslint-config/index.js",
)

# WorkItem sampling
MAX_SAMPLE_MESSAGES = 3
MAX_SAMPLE_SOURCES = 3

# Placeholders substituted when the oracle cannot be parsed
EXPLANATION_FAILED = "Failed to generate explanation"
DISABLE_EDIT_FAILED = "Failed to generate"
NO_FIX_EXPLANATION = "No explanation provided"

PRIORITIES = ("low", "medium", "high")

# ESLint suppression comments
LINE_SUPPRESSION_TEMPLATE = "{indent}// eslint-disable-next-line {rule_id}"
FILE_SUPPRESSION_PREFIX = "/* eslint-disable"
FILE_SUPPRESSION_TEMPLATE = "/* eslint-disable {rule_id} */\n"
