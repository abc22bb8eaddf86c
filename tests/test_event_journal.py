"""
Tests for the rotating event journal
"""

import logging

import pytest

from event_journal import EventJournal, LogLevel


def test_entries_are_appended_in_order(journal):
    journal.info("first")
    journal.warn("second")
    journal.error("third")

    entries = journal.read_entries()
    assert [(e["level"], e["message"]) for e in entries] == [
        ("info", "first"),
        ("warn", "second"),
        ("error", "third"),
    ]
    assert all(e["timestamp"].endswith("+00:00") for e in entries)
    assert not journal.backup_path.exists()


def test_log_accepts_level_names(journal):
    journal.log("warn", "by name")
    journal.log(LogLevel.ERROR, "by member")

    assert [e["level"] for e in journal.read_entries()] == ["warn", "error"]


def test_unknown_level_is_rejected(journal):
    with pytest.raises(ValueError):
        journal.log("debug", "nope")


def test_rotation_moves_history_to_backup(tmp_path):
    journal = EventJournal(tmp_path / "logs.jsonl", max_bytes=400)
    messages = []

    for i in range(100):
        message = f"event number {i}"
        journal.info(message)
        messages.append(message)
        if journal.backup_path.exists():
            break

    assert journal.backup_path.exists(), "journal never rotated"
    backup = [e["message"] for e in journal.read_entries(backup=True)]
    active = [e["message"] for e in journal.read_entries()]
    assert backup == messages[:-1]
    assert active == [messages[-1]]
    assert journal.backup_path.stat().st_size <= 400


def test_active_journal_stays_under_ceiling(tmp_path):
    journal = EventJournal(tmp_path / "logs.jsonl", max_bytes=300)

    for i in range(50):
        journal.info(f"message {i}")
        assert journal.path.stat().st_size <= 300

    assert journal.read_entries()[-1]["message"] == "message 49"


def test_oversized_entry_goes_into_empty_journal(tmp_path):
    journal = EventJournal(tmp_path / "logs.jsonl", max_bytes=10)

    journal.info("x" * 50)

    assert [e["message"] for e in journal.read_entries()] == ["x" * 50]
    assert not journal.backup_path.exists()


def test_failed_rotation_keeps_appending_to_active_journal(tmp_path, caplog):
    journal = EventJournal(tmp_path / "logs.jsonl", max_bytes=120)
    journal.backup_path.mkdir()
    (journal.backup_path / "keep.txt").write_text("existing", encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="event_journal"):
        for letter in "abc":
            journal.info(letter * 40)

    assert [e["message"] for e in journal.read_entries()] == ["a" * 40, "b" * 40, "c" * 40]
    assert [p.name for p in journal.backup_path.iterdir()] == ["keep.txt"]
    assert "Failed to rotate journal" in caplog.text


def test_write_failure_is_swallowed(tmp_path, caplog):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    journal = EventJournal(blocker / "logs.jsonl", max_bytes=1024)

    with caplog.at_level(logging.WARNING, logger="event_journal"):
        journal.error("cannot be written")

    assert "Failed to write journal entry" in caplog.text


def test_entries_are_mirrored_to_logging(journal, caplog):
    with caplog.at_level(logging.INFO, logger="event_journal"):
        journal.warn("mirrored")

    record = next(r for r in caplog.records if r.getMessage() == "mirrored")
    assert record.levelno == logging.WARNING


def test_read_entries_skips_garbage(journal):
    journal.info("kept")
    with open(journal.path, "a", encoding="utf-8") as f:
        f.write("not json\n\n")

    assert [e["message"] for e in journal.read_entries()] == ["kept"]


def test_max_bytes_must_be_positive(tmp_path):
    with pytest.raises(ValueError):
        EventJournal(tmp_path / "logs.jsonl", max_bytes=0)
