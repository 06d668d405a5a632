"""core/tuning.py — Movement and timing constants from ``data/tuning.toml``.

Systems read numbers at call time, never at import time, so a reload
takes effect on the next tick::

    from core.tuning import get as _tun
    threshold = _tun("movement", "arrival_threshold", 4.0)

Every call site passes the built-in value as the default.  With no file
(or a key missing from it) the office behaves exactly as documented in
the TOML, which keeps tests independent of the file on disk.
"""

from __future__ import annotations
from pathlib import Path

try:
    import tomllib                         # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib                # pip install tomli


DEFAULT_PATH = Path(__file__).resolve().parent.parent / "data" / "tuning.toml"

_tables: dict = {}
_source: Path | None = None


def load(path: str | Path | None = None) -> dict:
    """Read *path* (default ``data/tuning.toml``) and make it current.

    A missing file is not an error: the table is emptied and every
    ``get`` falls back to its default.  Malformed TOML raises
    ``tomllib.TOMLDecodeError``.
    """
    global _tables, _source
    _source = Path(path) if path is not None else DEFAULT_PATH

    if not _source.exists():
        print(f"[TUNING] {_source} not found, using built-in defaults")
        _tables = {}
        return _tables

    with open(_source, "rb") as f:
        _tables = tomllib.load(f)
    print(f"[TUNING] Loaded {_leaf_count(_tables)} values from {_source}")
    return _tables


def reload() -> dict:
    """Re-read whichever file was loaded last (viewer: F5)."""
    return load(_source)


def get(section: str, key: str, default=None):
    """``[section] key`` or *default*.  Dotted sections reach nested
    tables: ``get("wander.idle", ...)`` reads ``[wander.idle]``."""
    table = _tables
    for part in section.split("."):
        table = table.get(part) if isinstance(table, dict) else None
        if table is None:
            return default
    if not isinstance(table, dict):
        return default
    return table.get(key, default)


def _leaf_count(table: dict) -> int:
    return sum(_leaf_count(v) if isinstance(v, dict) else 1
               for v in table.values())
