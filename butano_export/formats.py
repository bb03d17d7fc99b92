"""Registry of map export formats, keyed by format id."""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .exporter import write


@dataclass(frozen=True)
class MapFormat:
    id: str                                          # e.g. "butano-collisions"
    name: str                                        # Shown in the export dialog
    extension: str                                   # Without the dot
    write: Callable[..., Optional[str]]              # (map, filename) -> error or None


_formats: Dict[str, MapFormat] = {}


def register_map_format(fmt: MapFormat) -> MapFormat:
    if fmt.id in _formats:
        raise ValueError(f"Map format already registered: {fmt.id}")
    _formats[fmt.id] = fmt
    return fmt


def get_map_format(format_id: str) -> MapFormat:
    """Raises KeyError for an unknown id."""
    return _formats[format_id]


def map_formats() -> List[MapFormat]:
    return list(_formats.values())


BUTANO_COLLISIONS = register_map_format(MapFormat(
    id="butano-collisions",
    name="Butano Header - Collision Map",
    extension="hh",
    write=write,
))
