# =============================================================================
# gbif_core/sizing.py  —  Serialized Size Estimation
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Measures how many bytes a value occupies once it is serialized the way
#   the MCP transport sends it (compact JSON, UTF-8), and renders byte
#   counts as short human-readable strings for log lines and messages.
# =============================================================================

import json
from typing import Any

_KB = 1024
_MB = 1024 * 1024


def serialize(value: Any) -> str:
    """Compact JSON text for a value, non-ASCII characters left as-is."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def calculate_size(value: Any) -> int:
    """Return the serialized size of ``value`` in bytes.

    Cyclic structures raise ``ValueError`` and objects json cannot encode
    raise ``TypeError``.  Both are caller bugs and are not caught here.
    """
    return len(serialize(value).encode("utf-8"))


def format_size(num_bytes: int) -> str:
    """Format a byte count: "1KB", "1.5KB", "250KB", "1.0MB", "2.5MB"."""
    if num_bytes < _MB:
        kb = num_bytes / _KB
        if kb.is_integer():
            return f"{int(kb)}KB"
        return f"{kb:.1f}KB"
    return f"{num_bytes / _MB:.1f}MB"
