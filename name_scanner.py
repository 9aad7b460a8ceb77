#!/usr/bin/env python3
"""
npm package name scanner:
- Classifies dictionary words as taken/available against a registry snapshot
- Caches the classification in a JSON file between runs
- Searches available names by substring, exact length, length range, random sampling and limit
- Exports the cache to a directory of your choice

Usage:
    name-scanner --find
    name-scanner --query cat --limit 10
    name-scanner --random --limit 5 --min 4 --max 6
    name-scanner --save ~/exports
"""

import argparse
import enum
import json
import logging
import os
import random
import sys
from dataclasses import dataclass, field
from logging.handlers import RotatingFileHandler
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

import yaml
from rich.console import Console
from rich.markup import escape

from registry_names import load_package_names
from scanner_errors import (
    CacheError,
    ConfigError,
    EmptyCacheError,
    InvalidDirectoryError,
    InvalidNumericArgumentError,
    MissingDataSourceError,
    NameScannerError,
)

__version__ = "1.0.1"

PROGRAM_NAME = "name-scanner"
DEFAULT_WORDS_PATH = "/usr/share/dict/words"
DEFAULT_CACHE_PATH = "available-packages.json"
EXPORT_FILE_NAME = "available-packages.json"
CACHE_KEYS = ("words", "packages", "available", "taken")

logger = logging.getLogger("name_scanner")


# ------------------------------- Config dataclasses -------------------------------

@dataclass
class RegistryConfig:
    packages_path: str
    url: str
    cache_path: str
    refresh_hours: float
    timeout: int


@dataclass
class ScannerConfig:
    words_path: str
    cache_path: str
    export_file_name: str
    strict_numbers: bool
    seed: Optional[int]
    registry: RegistryConfig
    logging: dict


def load_config(path: Optional[str] = None) -> ScannerConfig:
    """Read the YAML config at ``path``; every key is optional."""
    raw = {}
    if path:
        if not os.path.exists(path):
            raise ConfigError(f"Config file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            try:
                raw = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError("Config root must be a mapping")

    sc = raw.get("scanner", {}) or {}
    reg = sc.get("registry", {}) or {}
    if not isinstance(sc, dict) or not isinstance(reg, dict):
        raise ConfigError("scanner and scanner.registry must be mappings")

    try:
        registry_cfg = RegistryConfig(
            packages_path=str(reg.get("packages_path", "") or ""),
            url=str(reg.get("url", "https://unpkg.com/all-the-package-names/names.json")),
            cache_path=str(reg.get("cache_path", ".cache/package-names.json")),
            refresh_hours=float(reg.get("refresh_hours", 24)),
            timeout=int(reg.get("timeout", 60)),
        )
        strict_numbers = sc.get("strict_numbers", False)
        if not isinstance(strict_numbers, bool):
            raise ConfigError("scanner.strict_numbers must be true or false")
        seed = sc.get("seed")
        cfg = ScannerConfig(
            words_path=str(sc.get("words_path", DEFAULT_WORDS_PATH)),
            cache_path=str(sc.get("cache_path", DEFAULT_CACHE_PATH)),
            export_file_name=str(sc.get("export_file_name", EXPORT_FILE_NAME)),
            strict_numbers=strict_numbers,
            seed=int(seed) if seed is not None else None,
            registry=registry_cfg,
            logging=dict(sc.get("logging", {}) or {}),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid config value: {e}") from e

    if registry_cfg.refresh_hours < 0:
        raise ConfigError("scanner.registry.refresh_hours must be >= 0")
    if registry_cfg.timeout < 1:
        raise ConfigError("scanner.registry.timeout must be >= 1")
    return cfg


def setup_logging(cfg_logging: dict, debug: bool = False) -> logging.Logger:
    if logger.handlers:
        return logger
    level_name = (cfg_logging or {}).get("level", "INFO").upper()
    level = logging.DEBUG if debug else getattr(logging, level_name, logging.INFO)
    logger.setLevel(level)

    log_file = (cfg_logging or {}).get("file", "logs/name_scanner.log")
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handler = RotatingFileHandler(log_file, maxBytes=int((cfg_logging or {}).get("rotate_max_mb", 5))*1024*1024,
                                      backupCount=int((cfg_logging or {}).get("rotate_backups", 3)),
                                      encoding="utf-8")
        handler.setFormatter(logging.Formatter(fmt="%(asctime)s [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)

    if debug or (cfg_logging or {}).get("console", False):
        sh = logging.StreamHandler(sys.stderr)
        sh.setFormatter(logging.Formatter(fmt="%(asctime)s [%(levelname)s] %(message)s", datefmt="%H:%M:%S"))
        logger.addHandler(sh)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return logger


def jsonl_emit(cfg_logging: dict, event: str, payload: dict):
    path = (cfg_logging or {}).get("jsonl_file")
    if not path:
        return
    log_dir = os.path.dirname(path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    try:
        with open(path, "a", encoding="utf-8") as f:
            rec = {"event": event, **payload}
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")
    except OSError as e:
        logger.warning("JSONL emit failed | path=%s error=%s", path, str(e))


# ------------------------------- Messages -------------------------------

def message(kind: str, *args) -> str:
    """Build a user-facing message with rich markup."""
    if kind == "invalidNumber":
        return f"Argument must be a valid number but [bold red]{escape(str(args[0]))}[/bold red] was found"
    if kind == "foundAllAvailable":
        return (f"Found [bold red]{args[0]}[/bold red] taken and "
                f"[bold green]{args[1]}[/bold green] available npm package names")
    if kind == "configIsNotPopulated":
        return ("Available npm package names unknown.\n\n"
                f"Try running [bold blue]{PROGRAM_NAME} -f[/bold blue] first to find available npm package names")
    if kind == "directoryDoesNotExist":
        return f"{escape(str(args[0]))} is not a valid directory"
    if kind == "wordsFileDoesNotExist":
        return ("Unable to find words file\n\n"
                f"This tool needs a line-delimited word list such as [bold blue]{args[0]}[/bold blue]")
    if kind == "noOptionsOrIncompatibleOptions":
        return "Either no options were passed or options passed were incompatible with each other"
    if kind == "configSavedToDirectory":
        return f"Saved available npm package names to [bold blue]{args[0]}[/bold blue]"
    raise ValueError(f"unknown message kind: {kind}")


def format_search_results(result: "SearchResult") -> str:
    limit = result.limit
    if limit is None or limit > 0:
        listing = "\n".join(escape(n) for n in result.names)
        if limit is not None and limit < result.total:
            return (f"Found [bold green]{result.total}[/bold green] available npm package names, "
                    f"displaying [bold blue]{limit}[/bold blue]:\n\n{listing}")
        return f"Found [bold green]{result.total}[/bold green] available npm package names:\n\n{listing}"
    # zero or negative limit always reports nothing found
    return "Found [bold red]0[/bold red] available npm package names"


# ------------------------------- Cache -------------------------------

@dataclass
class Cache:
    words: Set[str] = field(default_factory=set)
    packages: Set[str] = field(default_factory=set)
    available: List[str] = field(default_factory=list)
    taken: List[str] = field(default_factory=list)

    def is_populated(self) -> bool:
        return bool(self.words or self.packages or self.available or self.taken)


def serialise_cache(cache: Cache) -> Dict[str, List[str]]:
    """Lowercase every name; original casing is not kept on disk."""
    return {
        "words": sorted(w.lower() for w in cache.words),
        "packages": sorted(p.lower() for p in cache.packages),
        "available": [n.lower() for n in cache.available],
        "taken": [n.lower() for n in cache.taken],
    }


def deserialise_cache(data: dict) -> Cache:
    if not isinstance(data, dict):
        raise CacheError("Cache document must be a JSON object")
    for key in CACHE_KEYS:
        if not isinstance(data.get(key, []), list):
            raise CacheError(f"Cache key '{key}' must be a list")
        if not all(isinstance(n, str) for n in data.get(key, [])):
            raise CacheError(f"Cache key '{key}' must only hold strings")
    return Cache(
        words=set(data.get("words", [])),
        packages=set(data.get("packages", [])),
        available=list(data.get("available", [])),
        taken=list(data.get("taken", [])),
    )


def save_cache(cache: Cache, path: str) -> str:
    parent = os.path.dirname(path)
    if parent:
        try:
            os.makedirs(parent, exist_ok=True)
        except OSError as e:
            raise CacheError(escape(f"Unable to create cache directory {parent}: {e}")) from e
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(serialise_cache(cache), f, indent=4, ensure_ascii=False)
            f.write("\n")
    except OSError as e:
        raise CacheError(escape(f"Unable to write cache file {path}: {e}")) from e
    logger.debug("Cache saved | path=%s", path)
    return path


def load_cache(path: str) -> Cache:
    """Load the cache at ``path``, writing an empty one first if it is missing."""
    if not os.path.exists(path):
        cache = Cache()
        save_cache(cache, path)
        logger.info("Cache created | path=%s", path)
        return cache
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise CacheError(escape(f"Cache file {path} is not valid JSON: {e}")) from e
    except OSError as e:
        raise CacheError(escape(f"Unable to read cache file {path}: {e}")) from e
    cache = deserialise_cache(data)
    logger.info("Cache loaded | path=%s words=%d packages=%d available=%d taken=%d",
                path, len(cache.words), len(cache.packages), len(cache.available), len(cache.taken))
    return cache


def export_cache(cache: Cache, directory: str, file_name: str = EXPORT_FILE_NAME) -> str:
    if not os.path.isdir(directory):
        raise InvalidDirectoryError(message("directoryDoesNotExist", directory))
    return save_cache(cache, os.path.join(directory, file_name))


def ensure_populated(cache: Cache):
    if not cache.is_populated():
        raise EmptyCacheError(message("configIsNotPopulated"))


# ------------------------------- Classifier -------------------------------

def load_words(path: str) -> Set[str]:
    if not path or not os.path.exists(path):
        raise MissingDataSourceError(message("wordsFileDoesNotExist", path or DEFAULT_WORDS_PATH))
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return {w.strip() for w in f if w.strip()}


def classify(candidates: Iterable[str], reference: Set[str]) -> Tuple[List[str], List[str]]:
    """Split ``candidates`` into (available, taken).

    A candidate is taken when the reference set holds it verbatim or in
    lowercase. Names keep their original case and candidate order.
    """
    available: List[str] = []
    taken: List[str] = []
    for name in dict.fromkeys(candidates):
        if name in reference or name.lower() in reference:
            taken.append(name)
        else:
            available.append(name)
    return available, taken


def refresh_cache(cache: Cache, words: Set[str], packages: Set[str]) -> Cache:
    available, taken = classify(words, packages)
    cache.words = set(words)
    cache.packages = set(packages)
    cache.available = available
    cache.taken = taken
    return cache


# ------------------------------- Query engine -------------------------------

class SelectionMode(enum.Enum):
    RANDOM = "random"
    QUERY = "query"
    ALL = "all"


@dataclass
class FilterSpec:
    query: Optional[str] = None
    random: bool = False
    limit: Optional[int] = None
    exact: Optional[int] = None
    min: Optional[int] = None
    max: Optional[int] = None

    @property
    def mode(self) -> SelectionMode:
        if self.random:
            return SelectionMode.RANDOM
        if self.query is not None:
            return SelectionMode.QUERY
        return SelectionMode.ALL


@dataclass
class SearchResult:
    names: List[str]
    total: int
    limit: Optional[int]
    mode: SelectionMode


def filter_by_length(names: Sequence[str], exact: Optional[int] = None,
                     min_len: Optional[int] = None, max_len: Optional[int] = None) -> List[str]:
    if exact is not None:
        return [n for n in names if len(n) == exact]
    out = []
    for n in names:
        if min_len is not None and len(n) < min_len:
            continue
        if max_len is not None and len(n) > max_len:
            continue
        out.append(n)
    return out


def sample_without_replacement(population: Sequence[str], count: int, rng: random.Random) -> List[str]:
    """Draw random indices until ``count`` distinct ones are picked or the population runs out."""
    picked: List[int] = []
    seen = set()
    size = len(population)
    while len(picked) < count and len(picked) < size:
        idx = rng.randint(0, size - 1)
        if idx in seen:
            continue
        seen.add(idx)
        picked.append(idx)
    return [population[i] for i in picked]


def search(spec: FilterSpec, available: Sequence[str], rng: Optional[random.Random] = None) -> SearchResult:
    candidates = filter_by_length(available, exact=spec.exact, min_len=spec.min, max_len=spec.max)

    mode = spec.mode
    limit = spec.limit
    if mode is SelectionMode.RANDOM:
        if limit is None:
            limit = 1
        matches = sample_without_replacement(candidates, limit, rng or random.Random())
    elif mode is SelectionMode.QUERY:
        needle = spec.query.lower()
        matches = [n for n in candidates if needle in n.lower()]
    else:
        matches = list(candidates)

    total = len(matches)
    if limit is not None and total > limit:
        matches = matches[:limit] if limit > 0 else []
    return SearchResult(names=matches, total=total, limit=limit, mode=mode)


# ------------------------------- Main -------------------------------

def parse_numeric(name: str, value: Optional[str], strict: bool, console: Console) -> Optional[int]:
    """Parse a numeric option; invalid values warn and count as unset unless ``strict``."""
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        text = message("invalidNumber", value)
        if strict:
            raise InvalidNumericArgumentError(text)
        logger.warning("Invalid numeric option | option=%s value=%s", name, value)
        console.print(text)
        return None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=PROGRAM_NAME, usage="%(prog)s [options]",
                                     description="Find available npm package names in a dictionary word list")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-f", "--find", action="store_true", help="find available and taken npm package names")
    parser.add_argument("-s", "--save", nargs="?", const=".", metavar="DIRECTORY",
                        help="save available and taken npm package names to .json file in directory")
    parser.add_argument("-r", "--random", action="store_true",
                        help="get random available npm package name (note: use limit to get more than one)")
    parser.add_argument("-q", "--query", help="get available npm package name with matching query string")
    parser.add_argument("-l", "--limit", help="limits number of available names to return")
    parser.add_argument("-e", "--exact", help="get available names of an exact length -- overrides min or max")
    parser.add_argument("-m", "--min", help="get available names higher than or equal to a specific length")
    parser.add_argument("-M", "--max", help="get available names lower than or equal to a specific length")
    parser.add_argument("--config", help="Path to YAML config")
    parser.add_argument("--cache", help="Override config: cache file path")
    parser.add_argument("--words", help="Override config: word list path")
    parser.add_argument("--seed", type=int, help="Seed for random sampling")
    parser.add_argument("--debug", action="store_true", help="Verbose debug logging")
    return parser


def find_available(cfg: ScannerConfig, cache: Cache, console: Console, session=None) -> Cache:
    words = load_words(cfg.words_path)
    packages = load_package_names(cfg.registry, session=session, logger=logger)
    refresh_cache(cache, words, packages)
    logger.info("Refresh | words=%d packages=%d taken=%d available=%d",
                len(words), len(packages), len(cache.taken), len(cache.available))
    jsonl_emit(cfg.logging, "refresh", {"taken": len(cache.taken), "available": len(cache.available)})
    console.print(message("foundAllAvailable", len(cache.taken), len(cache.available)))
    save_cache(cache, cfg.cache_path)
    return cache


def run(args: argparse.Namespace, cfg: ScannerConfig, console: Console, parser: argparse.ArgumentParser,
        rng: Optional[random.Random] = None, session=None) -> int:
    cache = load_cache(cfg.cache_path)

    if args.find:
        find_available(cfg, cache, console, session=session)
        return 0

    ensure_populated(cache)

    if args.save is not None:
        path = export_cache(cache, args.save, cfg.export_file_name)
        logger.info("Export | path=%s", path)
        jsonl_emit(cfg.logging, "export", {"path": path})
        console.print(message("configSavedToDirectory", path))
        return 0

    strict = cfg.strict_numbers
    limit = parse_numeric("limit", args.limit, strict, console)
    exact = parse_numeric("exact", args.exact, strict, console)
    min_len = parse_numeric("min", args.min, strict, console)
    max_len = parse_numeric("max", args.max, strict, console)

    if args.random:
        spec = FilterSpec(random=True, limit=limit, exact=exact, min=min_len, max=max_len)
    elif args.query is not None:
        spec = FilterSpec(query=args.query, limit=limit, exact=exact, min=min_len, max=max_len)
    elif any(v is not None for v in (limit, exact, min_len, max_len)):
        spec = FilterSpec(limit=limit, exact=exact, min=min_len, max=max_len)
    else:
        console.print(message("noOptionsOrIncompatibleOptions"))
        parser.print_help()
        return 0

    if rng is None:
        seed = args.seed if args.seed is not None else cfg.seed
        rng = random.Random(seed)
    result = search(spec, cache.available, rng=rng)
    logger.info("Search | mode=%s total=%d shown=%d", result.mode.value, result.total, len(result.names))
    jsonl_emit(cfg.logging, "search", {
        "mode": result.mode.value, "query": spec.query, "limit": spec.limit,
        "exact": spec.exact, "min": spec.min, "max": spec.max, "total": result.total,
    })
    console.print(format_search_results(result), highlight=False)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    console = Console(soft_wrap=True)

    try:
        cfg = load_config(args.config)
        if args.cache:
            cfg.cache_path = args.cache
        if args.words:
            cfg.words_path = args.words
        setup_logging(cfg.logging, debug=args.debug)
        logger.debug("Starting | cache=%s words=%s", cfg.cache_path, cfg.words_path)
        return run(args, cfg, console, parser)
    except NameScannerError as e:
        logger.error("Stop | %s: %s", type(e).__name__, str(e))
        console.print(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
