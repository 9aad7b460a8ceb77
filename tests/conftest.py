"""Shared fixtures: an isolated word list, registry snapshot and config per test."""

import json
import logging

import pytest

WORDS = ["Cat", "dog", "Zebra", "apple", "Apple", "banana", "kiwi", "fig"]
PACKAGES = ["cat", "zebra", "apple", "express", "react"]


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    log = logging.getLogger("name_scanner")
    for h in list(log.handlers):
        log.removeHandler(h)
        h.close()


@pytest.fixture
def workspace(tmp_path):
    words = tmp_path / "words"
    words.write_text("\n".join(WORDS) + "\n", encoding="utf-8")
    packages = tmp_path / "names.json"
    packages.write_text(json.dumps(PACKAGES), encoding="utf-8")
    cache = tmp_path / "available-packages.json"
    config = tmp_path / "config.yaml"
    config.write_text(
        "scanner:\n"
        f"  words_path: {words}\n"
        f"  cache_path: {cache}\n"
        "  registry:\n"
        f"    packages_path: {packages}\n"
        "  logging:\n"
        f"    file: {tmp_path / 'logs' / 'name_scanner.log'}\n"
        f"    jsonl_file: {tmp_path / 'logs' / 'events.jsonl'}\n",
        encoding="utf-8",
    )
    return {"root": tmp_path, "words": words, "packages": packages, "cache": cache, "config": config}
