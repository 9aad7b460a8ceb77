"""
Registry snapshot loader.

Provides the set of already-registered npm package names:
- from a local file (JSON array or one name per line), or
- downloaded once from a published snapshot and kept on disk,
  refreshed when older than ``refresh_hours``.

This never asks the registry whether a single name is free; it only
materializes a static list.
"""

import json
import logging
import os
import time
from typing import Iterable, Optional, Set

import requests

from scanner_errors import ReferenceSourceError


def parse_names(text: str, json_hint: bool = False) -> Set[str]:
    """Parse a JSON array of names or newline-delimited names."""
    stripped = text.lstrip()
    if json_hint or stripped.startswith("["):
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ReferenceSourceError(f"Package name snapshot is not valid JSON: {e}") from e
        if not isinstance(data, list):
            raise ReferenceSourceError("Package name snapshot must be a JSON array")
        return _clean(data)
    return _clean(text.splitlines())


def _clean(names: Iterable) -> Set[str]:
    return {str(n).strip() for n in names if n is not None and str(n).strip()}


def read_names_file(path: str) -> Set[str]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except OSError as e:
        raise ReferenceSourceError(f"Unable to read package names from {path}: {e}") from e
    return parse_names(text, json_hint=path.lower().endswith(".json"))


def _is_fresh(path: str, refresh_hours: float) -> bool:
    if not os.path.exists(path):
        return False
    if refresh_hours <= 0:
        return False
    return (time.time() - os.path.getmtime(path)) < refresh_hours * 3600


def fetch_names(url: str, session: Optional[requests.Session] = None, timeout: int = 60) -> Set[str]:
    s = session or requests.Session()
    try:
        r = s.get(url, timeout=timeout)
        r.raise_for_status()
    except requests.RequestException as e:
        raise ReferenceSourceError(f"Unable to download package names from {url}: {e}") from e
    return parse_names(r.text, json_hint=True)


def load_package_names(cfg, session: Optional[requests.Session] = None,
                       logger: Optional[logging.Logger] = None) -> Set[str]:
    """Load the registered-name snapshot described by a registry config.

    ``cfg`` needs ``packages_path``, ``url``, ``cache_path``, ``refresh_hours``
    and ``timeout`` attributes.
    """
    log = logger or logging.getLogger("name_scanner")

    if cfg.packages_path:
        if not os.path.exists(cfg.packages_path):
            raise ReferenceSourceError(f"Package names file not found: {cfg.packages_path}")
        names = read_names_file(cfg.packages_path)
        log.info("Package names loaded from file | path=%s count=%d", cfg.packages_path, len(names))
        return names

    cache_path = cfg.cache_path
    if cache_path and _is_fresh(cache_path, cfg.refresh_hours):
        names = read_names_file(cache_path)
        log.info("Package names loaded from cache | path=%s count=%d", cache_path, len(names))
        return names

    if not cfg.url:
        raise ReferenceSourceError("No package names source configured (registry.packages_path or registry.url)")

    names = fetch_names(cfg.url, session=session, timeout=cfg.timeout)
    if not names:
        raise ReferenceSourceError(f"Package name snapshot from {cfg.url} is empty")
    log.info("Package names fetched | url=%s count=%d", cfg.url, len(names))

    if cache_path:
        try:
            cache_dir = os.path.dirname(cache_path)
            if cache_dir:
                os.makedirs(cache_dir, exist_ok=True)
            with open(cache_path, "w", encoding="utf-8") as f:
                json.dump(sorted(names), f)
        except OSError as e:
            log.warning("Package names cache write failed | path=%s error=%s", cache_path, str(e))
    return names
