"""Cache-bust task: refresh the `cb=<n>` query token in the public entry page."""

import re
import threading
import time

from ..assetflow import task
from ..assetflow.config import BuildConfig
from ..assetflow.logging import get_logger
from ..assetflow.utils import atomic_write_text

TOKEN_RE = re.compile(r"cb=\d+")

_lock = threading.Lock()
_last_token = 0


def next_token() -> int:
    """Current epoch milliseconds, strictly increasing within this process."""
    global _last_token
    with _lock:
        token = int(time.time() * 1000)
        if token <= _last_token:
            token = _last_token + 1
        _last_token = token
        return token


def rewrite_cache_bust(text: str, token: int) -> tuple[str, int]:
    """Replace every `cb=<digits>` in `text`; returns (new_text, count)."""
    return TOKEN_RE.subn(f"cb={token}", text)


@task(
    name="cachebust",
    inputs=lambda c: [str(c.index)],
    outputs=lambda c: [str(c.index)],
    category="code",
)
def cache_bust(config: BuildConfig):
    logger = get_logger("tasks.cachebust")
    index = config.index
    if not index.is_file():
        raise FileNotFoundError(f"Entry page not found: {index}")

    token = next_token()
    # newline="" keeps the page's own line endings untouched
    with open(index, "r", encoding="utf-8", newline="") as f:
        text = f.read()
    updated, count = rewrite_cache_bust(text, token)
    if count == 0:
        logger.warning("No cache-bust token (cb=<n>) found in %s", index)
        return
    atomic_write_text(index, updated)
    logger.info("Cache-bust token set to cb=%d (%d references)", token, count)
