"""
Export result rows to a JSON file

Files are named ``<prefix>_<unix-timestamp>.json`` and hold the rows as a
pretty-printed JSON array.
"""

import json
import logging
import math
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from dbx.core.errors import ExportError

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "dbx_export"


def clean_value(val: Any) -> Any:
    """Replace NaN and infinity (which JSON cannot carry) with None, recursively"""
    if isinstance(val, float):
        if math.isnan(val) or math.isinf(val):
            return None
    elif isinstance(val, dict):
        return {k: clean_value(v) for k, v in val.items()}
    elif isinstance(val, list):
        return [clean_value(v) for v in val]
    return val


def dump_json(value: Any, indent: int = 2, compact: bool = False) -> str:
    """Serialize a decoded JSON value, non-ASCII text kept as is"""
    cleaned = clean_value(value)
    if compact:
        return json.dumps(cleaned, separators=(",", ":"), ensure_ascii=False)
    return json.dumps(cleaned, indent=indent, ensure_ascii=False)


def export_filename(prefix: str = DEFAULT_PREFIX, now: Optional[float] = None) -> str:
    timestamp = int(time.time() if now is None else now)
    return f"{prefix}_{timestamp}.json"


def export_rows(
    rows: List[Dict[str, Any]],
    prefix: str = DEFAULT_PREFIX,
    directory: Optional[Path] = None,
    now: Optional[float] = None,
) -> Path:
    """
    Write rows to a timestamped JSON file

    Args:
        rows: Result rows to write
        prefix: File name prefix
        directory: Target directory (default: current working directory)
        now: Unix time used in the file name (default: current time)

    Returns:
        Path of the written file

    Raises:
        ExportError: If the rows cannot be serialized or the file cannot be written
    """
    path = Path(directory or Path.cwd()) / export_filename(prefix, now)

    try:
        text = dump_json(rows, indent=2)
    except (TypeError, ValueError) as e:
        raise ExportError(f"Failed to serialize results: {e}") from e

    try:
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise ExportError(f"Failed to export to {path}: {e}") from e

    logger.info("Exported %d rows to %s", len(rows), path)
    return path
