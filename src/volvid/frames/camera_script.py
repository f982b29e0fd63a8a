"""Camera script loading.

A camera script is a JSON list of partial parameter-override records::

    [
        {"angle": "0"},
        {"step": "0.0005"},
        null,
        {"fr": "4 0 1", "at": "0 0 0"}
    ]

Records may use field names or engine flag names. ``null`` entries are
placeholders that are dropped after sampling.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional

from volvid.contracts import ConfigurationError

logger = logging.getLogger(__name__)


def load_camera_script(path) -> List[Optional[dict]]:
    """Read and shape-check a camera script.

    Raises
    ------
    ConfigurationError
        If the file is missing, not JSON, not a list, or holds a record
        that is neither an object nor null.
    """
    path = Path(path)
    try:
        text = path.read_text()
    except OSError as e:
        raise ConfigurationError(f"Cannot read camera script {path}: {e}") from e

    try:
        entries = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Camera script {path} is not valid JSON: {e}") from e

    if not isinstance(entries, list):
        raise ConfigurationError(f"Camera script {path} must be a JSON list of records")

    for i, entry in enumerate(entries):
        if entry is not None and not isinstance(entry, dict):
            raise ConfigurationError(
                f"Camera script {path} record {i} must be an object or null, got {type(entry).__name__}"
            )

    logger.debug("Loaded camera script %s (%d records)", path, len(entries))
    return entries
