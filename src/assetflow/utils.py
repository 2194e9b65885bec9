from __future__ import annotations

"""Small helpers for config lookups, glob handling and safe file writes."""

import contextlib
import os
import re
import tempfile
from pathlib import Path
from typing import Dict, Iterable, List

_BRACE_RE = re.compile(r"\{([^{}]*)\}")
_WILDCARD_CHARS = "*?["


def _get(d: Dict, *keys, default=None):
    cur = d
    for k in keys:
        if not isinstance(cur, dict):
            return default
        cur = cur.get(k)
        if cur is None:
            return default
    return cur


def expand_braces(pattern: str) -> list[str]:
    """Expand `{a,b}` alternatives, e.g. `main.{scss,sass}` -> two patterns."""
    m = _BRACE_RE.search(pattern)
    if not m:
        return [pattern]
    head, tail = pattern[: m.start()], pattern[m.end() :]
    out: list[str] = []
    for alt in m.group(1).split(","):
        out.extend(expand_braces(head + alt + tail))
    return out


def has_magic(pattern: str) -> bool:
    return any(ch in pattern for ch in _WILDCARD_CHARS)


def glob_base(pattern: str) -> str:
    """Leading directory of a glob that contains no wildcard."""
    parts = pattern.replace("\\", "/").split("/")
    static: list[str] = []
    for part in parts[:-1]:
        if has_magic(part) or "{" in part:
            break
        static.append(part)
    return "/".join(static)


def _sort_key(p: Path) -> tuple:
    return tuple(p.parts)


def expand_globs(patterns: Iterable[str], root: Path) -> list[Path]:
    """Expand glob patterns under `root` into existing files.

    Patterns keep their declared order; matches of one pattern are sorted by
    path components. A pattern starting with `!` removes earlier matches.
    """
    ordered: list[Path] = []
    seen: set[Path] = set()
    excludes: list[str] = []
    for pat in patterns:
        if pat.startswith("!"):
            excludes.extend(expand_braces(pat[1:]))
            continue
        for alt in expand_braces(pat):
            if has_magic(alt):
                found = [p for p in root.glob(alt) if p.is_file()]
            else:
                p = root / alt
                found = [p] if p.is_file() else []
            for p in sorted(found, key=_sort_key):
                if p not in seen:
                    seen.add(p)
                    ordered.append(p)
    if excludes:
        ordered = [
            p
            for p in ordered
            if not any(glob_match(relative_posix(p, root), ex) for ex in excludes)
        ]
    return ordered


def relative_posix(path: Path, root: Path) -> str:
    try:
        return path.resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return path.as_posix()


def _translate(pattern: str) -> str:
    i, n = 0, len(pattern)
    res: List[str] = []
    while i < n:
        c = pattern[i]
        if pattern.startswith("**/", i):
            res.append("(?:.*/)?")
            i += 3
            continue
        if pattern.startswith("**", i):
            res.append(".*")
            i += 2
            continue
        if c == "*":
            res.append("[^/]*")
        elif c == "?":
            res.append("[^/]")
        elif c == "[":
            j = pattern.find("]", i + 1)
            if j == -1:
                res.append(re.escape(c))
            else:
                body = pattern[i + 1 : j]
                if body.startswith("!"):
                    body = "^" + body[1:]
                res.append(f"[{body}]")
                i = j + 1
                continue
        else:
            res.append(re.escape(c))
        i += 1
    return "".join(res)


def glob_match(rel_path: str, pattern: str) -> bool:
    """Match a `/`-separated relative path against a glob with `**` and braces."""
    rel_path = rel_path.replace("\\", "/")
    for alt in expand_braces(pattern):
        if re.fullmatch(_translate(alt), rel_path):
            return True
    return False


def atomic_write_bytes(path: Path, data: bytes) -> Path:
    """Write `data` to `path` via a temp file in the same directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp)
        raise
    return path


def atomic_write_text(path: Path, text: str, encoding: str = "utf-8") -> Path:
    return atomic_write_bytes(path, text.encode(encoding))

