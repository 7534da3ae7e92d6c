"""
Session Manager
===============
Holds the oracle's opaque conversation handle for the file being worked on.

The handle is passed explicitly into every oracle call and refreshed from
every reply that carries one; providers never keep it themselves. The
orchestrator calls reset() when the next unit of work belongs to a
different file, so example code from one file never leaks into prompts
about another.
"""
import logging
from typing import Optional

from lintpilot.utils.path_utils import short_path

logger = logging.getLogger(__name__)


class SessionManager:
    """Current session handle plus the file it belongs to."""

    def __init__(self) -> None:
        self.session_id: Optional[str] = None
        self.current_file: Optional[str] = None
        self.reset_count = 0

    def update(self, session_id: Optional[str]) -> None:
        """Adopt a handle returned by the oracle, if any."""
        if session_id and session_id != self.session_id:
            logger.debug("Session handle updated: %s", session_id)
            self.session_id = session_id

    def reset(self) -> None:
        """Discard the conversation handle."""
        self.session_id = None
        self.reset_count += 1
        logger.debug("Oracle session reset")

    def switch_file(self, file_path: Optional[str]) -> bool:
        """
        Track the file of the next unit of work.

        Resets the session when moving from one file to a different one.
        The first file of a run never triggers a reset. Returns True if a
        reset happened.
        """
        if not file_path or file_path == self.current_file:
            return False

        previous = self.current_file
        self.current_file = file_path
        if previous is None:
            return False

        logger.info("Switching file: %s -> %s", short_path(previous), short_path(file_path))
        self.reset()
        return True
