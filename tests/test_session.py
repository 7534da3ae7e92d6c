"""
Unit Tests — Session Manager
=============================
Handle adoption and per-file reset semantics.
"""
from lintpilot.llm.session import SessionManager


def test_initially_absent():
    session = SessionManager()
    assert session.session_id is None
    assert session.current_file is None


def test_update_adopts_new_handle():
    session = SessionManager()
    session.update("s-1")
    assert session.session_id == "s-1"
    session.update(None)
    assert session.session_id == "s-1"
    session.update("s-2")
    assert session.session_id == "s-2"


def test_reset_discards_handle():
    session = SessionManager()
    session.update("s-1")
    session.reset()
    assert session.session_id is None
    assert session.reset_count == 1


def test_first_file_does_not_reset():
    session = SessionManager()
    session.update("s-1")
    assert session.switch_file("/repo/a.js") is False
    assert session.session_id == "s-1"
    assert session.reset_count == 0


def test_same_file_keeps_session():
    session = SessionManager()
    session.switch_file("/repo/a.js")
    session.update("s-1")
    assert session.switch_file("/repo/a.js") is False
    assert session.session_id == "s-1"


def test_two_files_in_sequence_reset_exactly_once():
    session = SessionManager()
    session.switch_file("/repo/a.js")
    session.update("s-1")

    assert session.switch_file("/repo/b.js") is True
    assert session.reset_count == 1
    assert session.session_id is None
    assert session.current_file == "/repo/b.js"


def test_missing_file_is_ignored():
    session = SessionManager()
    session.switch_file("/repo/a.js")
    assert session.switch_file(None) is False
    assert session.current_file == "/repo/a.js"
