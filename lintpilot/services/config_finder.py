"""
Lint Config Finder
==================
Locates the ESLint config file the disable-rule edit is written to.
"""
import logging
import os
from typing import Optional

from lintpilot.core.constants import CONFIG_CANDIDATES
from lintpilot.core.errors import ConfigMissing

logger = logging.getLogger(__name__)


def find_lint_config(project_root: str, explicit: Optional[str] = None) -> str:
    """
    Resolve the lint config path.

    Parameters
    ----------
    project_root : str
        Directory the analyzer runs in.
    explicit : str or None
        User-supplied path (monorepos); relative paths resolve against
        project_root.

    Returns
    -------
    str
        Absolute path of the config file.

    Raises
    ------
    ConfigMissing
        If the explicit path does not exist or no candidate is found.
    """
    if explicit:
        path = os.path.abspath(os.path.join(project_root, explicit))
        if not os.path.isfile(path):
            raise ConfigMissing(f"ESLint config not found: {path}")
        return path

    for candidate in CONFIG_CANDIDATES:
        path = os.path.join(project_root, candidate)
        if os.path.isfile(path):
            logger.debug("Found lint config: %s", path)
            return os.path.abspath(path)

    raise ConfigMissing(
        "ESLint config not found (looked for: " + ", ".join(CONFIG_CANDIDATES) + ")"
    )
