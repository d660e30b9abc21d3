"""Load the instrument value catalog used by the catalog price oracle.

- INSTRUMENT_VALUES_PATH env or default data/instrument_values.json.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_DEFAULT_CATALOG: dict[str, Any] = {
    "instruments": {},
    "brands": {},
}


def _project_data_dir() -> Path:
    return Path(__file__).resolve().parent.parent.parent.parent / "data"


def _resolve_catalog_path() -> Path:
    path = os.environ.get("INSTRUMENT_VALUES_PATH")
    if path:
        return Path(path)
    return _project_data_dir() / "instrument_values.json"


def _empty_catalog() -> dict[str, Any]:
    return {k: dict(v) for k, v in _DEFAULT_CATALOG.items()}


def load_instrument_catalog(path: Path | None = None) -> dict[str, Any]:
    """Load the catalog from JSON, or return an empty catalog if the file is missing or invalid.

    ``instruments`` maps instrument IDs (as strings) to ``{"brand", "initial_value"}``;
    ``brands`` maps a brand name to a fallback initial value. Sections that are not
    JSON objects are replaced with empty ones.
    """
    path = path or _resolve_catalog_path()
    if not path.exists():
        return _empty_catalog()
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError:
        logger.warning("Instrument catalog %s is not valid JSON; ignoring it", path)
        return _empty_catalog()
    if not isinstance(data, dict):
        logger.warning("Instrument catalog %s must be a JSON object; ignoring it", path)
        return _empty_catalog()

    catalog = _empty_catalog()
    for section in catalog:
        value = data.get(section, {})
        if isinstance(value, dict):
            catalog[section] = value
        else:
            logger.warning("Catalog section %r in %s is not an object; ignoring it", section, path)
    return catalog
