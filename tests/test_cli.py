"""Command line — one operation per invocation, fatal errors exit with status 1."""

import json

import pytest

from name_scanner import main


def run_cli(workspace, *argv):
    return main(["--config", str(workspace["config"]), *argv])


@pytest.fixture
def populated(workspace, capsys):
    assert run_cli(workspace, "-f") == 0
    capsys.readouterr()
    return workspace


def listed_names(out):
    return sorted(line for line in out.split("\n\n", 1)[1].splitlines() if line)


def test_find_classifies_and_persists(workspace, capsys):
    assert run_cli(workspace, "--find") == 0
    out = capsys.readouterr().out
    assert "Found 4 taken and 4 available npm package names" in out
    doc = json.loads(workspace["cache"].read_text(encoding="utf-8"))
    assert sorted(doc["available"]) == ["banana", "dog", "fig", "kiwi"]
    assert sorted(doc["taken"]) == ["apple", "apple", "cat", "zebra"]


def test_find_emits_event(workspace):
    run_cli(workspace, "-f")
    events = (workspace["root"] / "logs" / "events.jsonl").read_text(encoding="utf-8").splitlines()
    assert json.loads(events[-1]) == {"event": "refresh", "taken": 4, "available": 4}


def test_find_without_word_list(workspace, capsys):
    workspace["words"].unlink()
    assert run_cli(workspace, "-f") == 1
    assert "Unable to find words file" in capsys.readouterr().out
    doc = json.loads(workspace["cache"].read_text(encoding="utf-8"))
    assert doc["available"] == []


def test_query_before_find_is_refused(workspace, capsys):
    assert run_cli(workspace, "-q", "a") == 1
    out = capsys.readouterr().out
    assert "Available npm package names unknown" in out
    assert "name-scanner -f" in out


def test_query(populated, capsys):
    assert run_cli(populated, "-q", "AN") == 0
    out = capsys.readouterr().out
    assert "Found 1 available npm package names:" in out
    assert listed_names(out) == ["banana"]


def test_limit_alone_lists_names(populated, capsys):
    assert run_cli(populated, "-l", "2") == 0
    out = capsys.readouterr().out
    assert "Found 4 available npm package names, displaying 2:" in out
    assert len(listed_names(out)) == 2


def test_exact_length(populated, capsys):
    assert run_cli(populated, "-e", "3") == 0
    assert listed_names(capsys.readouterr().out) == ["dog", "fig"]


def test_min_and_max(populated, capsys):
    assert run_cli(populated, "-m", "4", "-M", "6") == 0
    assert listed_names(capsys.readouterr().out) == ["banana", "kiwi"]


def test_random_with_seed(populated, capsys):
    assert run_cli(populated, "-r", "-l", "10", "--seed", "5") == 0
    assert listed_names(capsys.readouterr().out) == ["banana", "dog", "fig", "kiwi"]


def test_zero_limit_reports_nothing(populated, capsys):
    assert run_cli(populated, "-q", "a", "-l", "0") == 0
    assert "Found 0 available npm package names" in capsys.readouterr().out


def test_invalid_number_warns_then_shows_help(populated, capsys):
    assert run_cli(populated, "-l", "abc") == 0
    out = capsys.readouterr().out
    assert "Argument must be a valid number but abc was found" in out
    assert "Either no options were passed" in out
    assert "usage:" in out


def test_invalid_number_is_ignored_by_search(populated, capsys):
    assert run_cli(populated, "-q", "i", "-l", "many") == 0
    out = capsys.readouterr().out
    assert "valid number but many" in out
    assert listed_names(out) == ["fig", "kiwi"]


def test_strict_numbers_is_fatal(populated, capsys):
    config = populated["config"]
    config.write_text(config.read_text(encoding="utf-8") + "  strict_numbers: true\n", encoding="utf-8")
    assert run_cli(populated, "-e", "three") == 1
    assert "valid number but three" in capsys.readouterr().out


def test_no_options_shows_help(populated, capsys):
    assert run_cli(populated) == 0
    out = capsys.readouterr().out
    assert "Either no options were passed" in out
    assert "--find" in out


def test_save_exports(populated, tmp_path, capsys):
    target = tmp_path / "export"
    target.mkdir()
    assert run_cli(populated, "-s", str(target)) == 0
    assert "Saved available npm package names to" in capsys.readouterr().out
    doc = json.loads((target / "available-packages.json").read_text(encoding="utf-8"))
    assert set(doc) == {"words", "packages", "available", "taken"}


def test_save_to_missing_directory(populated, tmp_path, capsys):
    assert run_cli(populated, "-s", str(tmp_path / "missing")) == 1
    assert "is not a valid directory" in capsys.readouterr().out


def test_cache_override(workspace, tmp_path, capsys):
    other = tmp_path / "other" / "cache.json"
    assert run_cli(workspace, "-f", "--cache", str(other)) == 0
    assert other.exists()
    assert not workspace["cache"].exists()


def test_save_to_long_directory_keeps_path_on_one_line(populated, tmp_path, capsys):
    target = tmp_path / ("d" * 90)
    target.mkdir()
    assert run_cli(populated, "-s", str(target)) == 0
    out = capsys.readouterr().out
    assert str(target / "available-packages.json") in out
    assert len(out.strip().splitlines()) == 1


def test_missing_long_directory_message_is_not_wrapped(populated, tmp_path, capsys):
    missing = tmp_path / ("m" * 90)
    assert run_cli(populated, "-s", str(missing)) == 1
    assert f"{missing} is not a valid directory" in capsys.readouterr().out


def test_export_write_failure_is_fatal(populated, tmp_path, capsys):
    target = tmp_path / "export"
    (target / "available-packages.json").mkdir(parents=True)
    assert run_cli(populated, "-s", str(target)) == 1
    assert "Unable to write cache file" in capsys.readouterr().out


def test_cache_path_that_is_a_directory_is_fatal(workspace, capsys):
    workspace["cache"].mkdir()
    assert run_cli(workspace, "-f") == 1


def test_corrupt_cache_entries_are_fatal(workspace, capsys):
    workspace["cache"].write_text('{"words": [["x"]]}', encoding="utf-8")
    assert run_cli(workspace, "-q", "a") == 1
    assert "must only hold strings" in capsys.readouterr().out


def test_missing_registry_snapshot_is_fatal(workspace, capsys):
    workspace["packages"].unlink()
    assert run_cli(workspace, "-f") == 1
    assert "Package names file not found" in capsys.readouterr().out
    assert json.loads(workspace["cache"].read_text(encoding="utf-8"))["available"] == []
