import json
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
import requests

import feed_diff.runner as runner
from conftest import build_rss
from feed_diff.errors import NetworkError, ParseError, StorageError
from feed_diff.models import ReportMetadata
from feed_diff.renderers import NO_CHANGES_MESSAGE
from feed_diff.runner import RunConfig, execute

URL = "https://opendata.example.com/RSS"
NOW = datetime(2024, 6, 2, 8, 30, tzinfo=timezone.utc)

PREVIOUS = build_rss(
    [("A", "https://opendata.example.com/a.csv", "Mon, 01 Jan 2024 00:00:00 GMT")]
)
CURRENT = build_rss(
    [
        ("A", "https://opendata.example.com/a.csv", "Mon, 01 Jan 2024 00:00:00 GMT"),
        ("B", "https://opendata.example.com/b.csv", "Thu, 01 Feb 2024 00:00:00 GMT"),
    ]
)


def _session(content=b"", error=None):
    calls = []

    def fake_get(url, timeout=None):
        calls.append(url)
        if error is not None:
            raise error
        return SimpleNamespace(content=content, raise_for_status=lambda: None)

    return SimpleNamespace(get=fake_get, calls=calls)


def _config(tmp_path, **kwargs):
    defaults = dict(
        url=URL,
        snapshot_path=str(tmp_path / "feeds" / "opendata.xml"),
        metadata=ReportMetadata(
            title_template="Updates {date:%Y-%m-%d}",
            author="watcher",
            categories=["open-data"],
        ),
    )
    defaults.update(kwargs)
    return RunConfig(**defaults)


def test_execute_reports_new_entries_and_persists_snapshot(tmp_path):
    config = _config(tmp_path)
    (tmp_path / "feeds").mkdir()
    (tmp_path / "feeds" / "opendata.xml").write_bytes(PREVIOUS)
    session = _session(CURRENT)

    result = execute(config, session=session, now=NOW)

    assert session.calls == [URL]
    assert (tmp_path / "feeds" / "opendata.xml").read_bytes() == CURRENT
    assert result.has_changes
    payload = json.loads(result.output_text)
    assert payload["title"] == "Updates 2024-06-02"
    assert payload["date"] == "2024-06-02T08:30:00Z"
    assert payload["author"] == "watcher"
    assert payload["categories"] == ["open-data"]
    assert payload["changes"] == [
        {"name": "B", "link": "https://opendata.example.com/b.csv", "date": "2024-02-01T00:00:00Z"}
    ]


def test_execute_reports_changed_timestamp(tmp_path):
    config = _config(tmp_path)
    (tmp_path / "feeds").mkdir()
    (tmp_path / "feeds" / "opendata.xml").write_bytes(PREVIOUS)
    updated = build_rss([("A", "https://opendata.example.com/a.csv", "Sat, 01 Jun 2024 00:00:00 GMT")])

    result = execute(config, session=_session(updated), now=NOW)

    assert [change.to_dict() for change in result.changes] == [
        {"name": "A", "link": "https://opendata.example.com/a.csv", "date": "2024-06-01T00:00:00Z"}
    ]


def test_execute_first_run_reports_everything(tmp_path):
    config = _config(tmp_path)

    result = execute(config, session=_session(CURRENT), now=NOW)

    assert [change.name for change in result.changes] == ["A", "B"]
    assert (tmp_path / "feeds" / "opendata.xml").read_bytes() == CURRENT


def test_execute_missing_snapshot_matches_empty_snapshot(tmp_path):
    missing = execute(_config(tmp_path / "one"), session=_session(CURRENT), now=NOW)

    empty_dir = tmp_path / "two" / "feeds"
    empty_dir.mkdir(parents=True)
    (empty_dir / "opendata.xml").write_bytes(b"")
    empty = execute(_config(tmp_path / "two"), session=_session(CURRENT), now=NOW)

    assert missing.output_text == empty.output_text
    assert missing.changes == empty.changes


def test_execute_second_run_reports_no_changes(tmp_path):
    config = _config(tmp_path)
    execute(config, session=_session(CURRENT), now=NOW)

    result = execute(config, session=_session(CURRENT), now=NOW)

    assert result.output_text == NO_CHANGES_MESSAGE
    assert result.report is None
    assert result.changes == []


def test_execute_empty_feeds_report_no_changes(tmp_path):
    result = execute(_config(tmp_path), session=_session(build_rss([])), now=NOW)

    assert result.output_text == NO_CHANGES_MESSAGE
    assert not result.has_changes


def test_execute_link_filter_applies_after_diff(tmp_path):
    config = _config(tmp_path, link_suffixes=[".zip"])

    result = execute(config, session=_session(CURRENT), now=NOW)

    assert result.output_text == NO_CHANGES_MESSAGE
    assert (tmp_path / "feeds" / "opendata.xml").read_bytes() == CURRENT


def test_execute_fetch_failure_keeps_snapshot(tmp_path):
    config = _config(tmp_path)
    (tmp_path / "feeds").mkdir()
    (tmp_path / "feeds" / "opendata.xml").write_bytes(PREVIOUS)
    session = _session(error=requests.ConnectionError("unreachable"))

    with pytest.raises(NetworkError):
        execute(config, session=session, now=NOW)

    assert (tmp_path / "feeds" / "opendata.xml").read_bytes() == PREVIOUS


def test_execute_persist_failure_aborts_before_diff(tmp_path, monkeypatch):
    config = _config(tmp_path)

    def fail_save(path, data):
        raise StorageError("disk full")

    def unexpected_diff(*args, **kwargs):
        raise AssertionError("diff must not run")

    monkeypatch.setattr(runner, "save_snapshot", fail_save)
    monkeypatch.setattr(runner, "diff_snapshots", unexpected_diff)

    with pytest.raises(StorageError):
        execute(config, session=_session(CURRENT), now=NOW)


def test_execute_corrupt_remote_is_persisted_then_fails(tmp_path):
    config = _config(tmp_path)

    with pytest.raises(ParseError):
        execute(config, session=_session(b"<<< not a feed"), now=NOW)

    assert (tmp_path / "feeds" / "opendata.xml").read_bytes() == b"<<< not a feed"


def test_execute_corrupt_local_snapshot_is_fatal(tmp_path):
    config = _config(tmp_path)
    (tmp_path / "feeds").mkdir()
    (tmp_path / "feeds" / "opendata.xml").write_bytes(b"garbage, not xml")
    session = _session(CURRENT)

    with pytest.raises(ParseError):
        execute(config, session=session, now=NOW)

    assert session.calls == []


def test_execute_writes_output_file(tmp_path):
    output = tmp_path / "out" / "report.txt"
    config = _config(tmp_path, output_format="text", output_file=str(output))

    result = execute(config, session=_session(CURRENT), now=NOW)

    assert output.read_text(encoding="utf-8") == result.output_text + "\n"
    assert "- B" in result.output_text


def test_execute_builds_session_from_ca_cert(tmp_path, monkeypatch):
    captured = {}

    def fake_build_session(ca_cert_path):
        captured["ca"] = ca_cert_path
        return _session(CURRENT)

    monkeypatch.setattr(runner, "build_session", fake_build_session)

    execute(_config(tmp_path, ca_cert_path="certs/ca.pem"), now=NOW)

    assert captured["ca"] == "certs/ca.pem"
