"""
Loading of offline library exports.

An export is a JSON list of series objects, each carrying its volumes in
the same shape Kavita returns from /api/Series/volumes:

    [{"id": 1, "name": "Berserk", "volumes": [{"number": 1, "chapters": [...]}]}]
"""
import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import List, Tuple, Union

from .models import Series, Volume
from .logging import ValidationError

logger = logging.getLogger(__name__)


def parse_library_export(data: object) -> List[Tuple[Series, List[Volume]]]:
    if not isinstance(data, list):
        raise ValidationError(f"Library export must be a list of series, got {type(data).__name__}")

    entries = []
    for index, item in enumerate(data):
        try:
            series = Series.from_dict(item)
            volumes = [Volume.from_dict(v) for v in item.get("volumes") or []]
        except (ValidationError, ValueError, TypeError) as e:
            raise ValidationError(f"Malformed series entry #{index + 1}: {e}") from e
        entries.append((series, volumes))
    return entries


def load_library_export(path: Union[str, Path]) -> List[Tuple[Series, List[Volume]]]:
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f, parse_float=Decimal)
    except json.JSONDecodeError as e:
        raise ValidationError(f"{path} is not valid JSON: {e}") from e
    except UnicodeDecodeError as e:
        raise ValidationError(f"Export is not UTF-8 text ({path}): {e}") from e
    except OSError as e:
        raise ValidationError(f"Could not read {path}: {e}") from e

    entries = parse_library_export(data)
    logger.info(f"Loaded {len(entries)} series from {path}")
    return entries
