"""core/office_map.py — Office collision grid, zones, and coordinate helpers.

The office is one fixed map: a boolean ``blocked[y][x]`` tile grid and
four categories of rectangular zones.  Everything is pixel-space except
the grid itself, which is indexed in tiles.

Zone categories
---------------
    work   — workstations (exclusive, one agent per desk)
    plan   — planning / meeting spots
    think  — thinking areas (agents wander inside one zone)
    idle   — lounge areas (agents roam between all of them)

Map files
---------
``load_office_map(path)`` reads either a TOML file in this repo's layout
(``data/office.toml``) or the JSON produced by the Tiled map parser
(``map`` / ``unifiedCollisionGrid`` / ``workstations`` / ...).
"""

from __future__ import annotations
import json
import math
import random
from dataclasses import dataclass
from pathlib import Path
from typing import NamedTuple, Optional

try:
    import tomllib
except ModuleNotFoundError:  # Python < 3.11
    import tomli as tomllib

from components.agent import CODING, PLANNING, THINKING, IDLE


CATEGORY_WORK = "work"
CATEGORY_PLAN = "plan"
CATEGORY_THINK = "think"
CATEGORY_IDLE = "idle"
CATEGORIES = (CATEGORY_WORK, CATEGORY_PLAN, CATEGORY_THINK, CATEGORY_IDLE)

STATE_TO_CATEGORY: dict[str, str] = {
    CODING:   CATEGORY_WORK,
    PLANNING: CATEGORY_PLAN,
    THINKING: CATEGORY_THINK,
    IDLE:     CATEGORY_IDLE,
}

# Key names used by the Tiled JSON export
_JSON_KEYS: dict[str, str] = {
    CATEGORY_WORK:  "workstations",
    CATEGORY_PLAN:  "planningZones",
    CATEGORY_THINK: "thinkingZones",
    CATEGORY_IDLE:  "idleZones",
}

FACINGS = ("away", "toward")

# Characters accepted by ``OfficeMap.from_rows``
_BLOCKED_CHARS = "#X"


@dataclass(frozen=True)
class Zone:
    """Rectangular area of the office, in pixels.

    ``center_x`` / ``center_y`` default to the rectangle centre.  For
    THINKING / IDLE targets a copy is made whose centre is a random
    point inside the rectangle (see ``with_point``).
    """
    id: str
    category: str
    x: float
    y: float
    width: float
    height: float
    center_x: float = math.nan
    center_y: float = math.nan
    facing: Optional[str] = None       # "away" | "toward" | None

    def __post_init__(self):
        if self.category not in CATEGORIES:
            raise ValueError(f"zone {self.id!r}: unknown category {self.category!r}")
        if self.facing is not None and self.facing not in FACINGS:
            raise ValueError(f"zone {self.id!r}: facing must be away/toward/None, "
                             f"got {self.facing!r}")
        if math.isnan(self.center_x):
            object.__setattr__(self, "center_x", self.x + self.width / 2)
        if math.isnan(self.center_y):
            object.__setattr__(self, "center_y", self.y + self.height / 2)

    @property
    def point(self) -> tuple[float, float]:
        return (self.center_x, self.center_y)

    def contains(self, px: float, py: float) -> bool:
        """Edge-inclusive rectangle test."""
        return (self.x <= px <= self.x + self.width
                and self.y <= py <= self.y + self.height)

    def with_point(self, px: float, py: float) -> "Zone":
        """Copy of this zone carrying (*px*, *py*) as its target point."""
        return Zone(self.id, self.category, self.x, self.y,
                    self.width, self.height, px, py, self.facing)


class MapDimensions(NamedTuple):
    tiles_x: int
    tiles_y: int
    tile_size: int


class OfficeMap:
    """Read-only zone + collision provider.

    The grid is frozen into tuples on construction; nothing in the core
    mutates it afterwards.
    """

    def __init__(self, blocked: list[list[bool]], tile_size: int,
                 zones: list[Zone] | None = None, name: str = "office"):
        if tile_size <= 0:
            raise ValueError(f"tile_size must be positive, got {tile_size}")
        rows = len(blocked)
        cols = len(blocked[0]) if rows else 0
        if rows == 0 or cols == 0:
            raise ValueError("collision grid is empty")
        for r, row in enumerate(blocked):
            if len(row) != cols:
                raise ValueError(f"collision grid row {r} has {len(row)} "
                                 f"cells, expected {cols}")

        self.name = name
        self.tile_size = int(tile_size)
        self.tiles_x = cols
        self.tiles_y = rows
        self._blocked: tuple[tuple[bool, ...], ...] = tuple(
            tuple(bool(c) for c in row) for row in blocked)

        self._zones: dict[str, list[Zone]] = {c: [] for c in CATEGORIES}
        self._by_id: dict[str, Zone] = {}
        for z in zones or ():
            if z.id in self._by_id:
                raise ValueError(f"duplicate zone id {z.id!r}")
            self._zones[z.category].append(z)
            self._by_id[z.id] = z

    # ── Construction helpers ─────────────────────────────────────────

    @classmethod
    def from_rows(cls, rows: list[str], tile_size: int = 16,
                  zones: list[Zone] | None = None,
                  name: str = "office") -> "OfficeMap":
        """Build a map from ASCII rows: ``#``/``X`` blocked, anything else open."""
        blocked = [[ch in _BLOCKED_CHARS for ch in row] for row in rows]
        return cls(blocked, tile_size, zones, name)

    @classmethod
    def from_map_data(cls, data: dict, name: str = "office") -> "OfficeMap":
        """Build a map from the Tiled-parser JSON layout."""
        try:
            meta = data["map"]
            grid = data["unifiedCollisionGrid"]
            tile_size = int(meta.get("tileWidth") or meta["tileSize"])
        except (KeyError, TypeError) as ex:
            raise ValueError(f"map data missing required key: {ex}") from ex

        zones: list[Zone] = []
        for category, key in _JSON_KEYS.items():
            for raw in data.get(key) or []:
                zones.append(_zone_from_dict(raw, category))
        return cls(grid, tile_size, zones, name)

    # ── Dimensions / conversion ──────────────────────────────────────

    def map_dimensions(self) -> MapDimensions:
        return MapDimensions(self.tiles_x, self.tiles_y, self.tile_size)

    @property
    def pixel_width(self) -> int:
        return self.tiles_x * self.tile_size

    @property
    def pixel_height(self) -> int:
        return self.tiles_y * self.tile_size

    def pixel_to_tile(self, px: float, py: float) -> tuple[int, int]:
        return (math.floor(px / self.tile_size),
                math.floor(py / self.tile_size))

    def tile_to_pixel(self, tx: int, ty: int) -> tuple[float, float]:
        """Centre of tile (*tx*, *ty*) in pixels."""
        half = self.tile_size / 2
        return (tx * self.tile_size + half, ty * self.tile_size + half)

    # ── Collision ────────────────────────────────────────────────────

    def is_walkable(self, tx: int, ty: int) -> bool:
        if tx < 0 or ty < 0 or tx >= self.tiles_x or ty >= self.tiles_y:
            return False
        return not self._blocked[ty][tx]

    def is_pixel_walkable(self, px: float, py: float) -> bool:
        return self.is_walkable(*self.pixel_to_tile(px, py))

    def blocked_rows(self) -> tuple[tuple[bool, ...], ...]:
        return self._blocked

    # ── Zones ────────────────────────────────────────────────────────

    def zones_of(self, category: str) -> list[Zone]:
        """Zones of *category* in load order (empty for unknown categories)."""
        return list(self._zones.get(category, ()))

    def zones_for_state(self, state: str) -> list[Zone]:
        category = STATE_TO_CATEGORY.get(state)
        if category is None:
            return []
        return self.zones_of(category)

    def zone_by_id(self, zone_id: str) -> Zone | None:
        return self._by_id.get(zone_id)

    def all_zones(self) -> list[Zone]:
        return [z for c in CATEGORIES for z in self._zones[c]]

    def zone_containing(self, px: float, py: float,
                        category: str) -> Zone | None:
        for z in self._zones.get(category, ()):
            if z.contains(px, py):
                return z
        return None

    def random_point_in(self, zone: Zone, padding: float = 8.0,
                        rng: random.Random | None = None) -> tuple[float, float]:
        """Uniform point inside *zone*, inset by *padding* from every edge.

        Zones narrower than twice the padding collapse to their centre
        line on that axis.
        """
        rng = rng or random
        inner_w = zone.width - padding * 2
        inner_h = zone.height - padding * 2
        if inner_w > 0:
            px = zone.x + padding + rng.random() * inner_w
        else:
            px = zone.x + zone.width / 2
        if inner_h > 0:
            py = zone.y + padding + rng.random() * inner_h
        else:
            py = zone.y + zone.height / 2
        return (px, py)

    def spawn_point(self) -> tuple[float, float]:
        """Where new agents appear.

        Scans from the right-hand side of the office toward the middle
        for the first walkable tile (keeping a 3-tile margin), then falls
        back to the first idle zone, then to the map centre.
        """
        for tx in range(self.tiles_x - 3, self.tiles_x // 2 - 1, -1):
            for ty in range(3, self.tiles_y - 3):
                if self.is_walkable(tx, ty):
                    return self.tile_to_pixel(tx, ty)
        idle = self._zones[CATEGORY_IDLE]
        if idle:
            return idle[0].point
        return (self.pixel_width / 2, self.pixel_height / 2)

    def __repr__(self) -> str:
        counts = ", ".join(f"{c}={len(self._zones[c])}" for c in CATEGORIES)
        return (f"OfficeMap({self.name!r}, {self.tiles_x}x{self.tiles_y}"
                f"@{self.tile_size}px, {counts})")


# ── Loading ──────────────────────────────────────────────────────────

def _zone_from_dict(raw: dict, category: str, tile_size: int = 1) -> Zone:
    """Parse one zone table.  Coordinates are multiplied by *tile_size*
    so TOML maps can be authored in tiles."""
    try:
        zid = str(raw["id"])
        x = float(raw["x"]) * tile_size
        y = float(raw["y"]) * tile_size
        w = float(raw["width"]) * tile_size
        h = float(raw["height"]) * tile_size
    except (KeyError, TypeError, ValueError) as ex:
        raise ValueError(f"bad {category} zone {raw!r}: {ex}") from ex
    cx = raw.get("centerX", raw.get("center_x"))
    cy = raw.get("centerY", raw.get("center_y"))
    return Zone(
        id=zid, category=category, x=x, y=y, width=w, height=h,
        center_x=float(cx) * tile_size if cx is not None else math.nan,
        center_y=float(cy) * tile_size if cy is not None else math.nan,
        facing=raw.get("facing") or None,
    )


def _from_toml(data: dict, default_name: str) -> OfficeMap:
    meta = data.get("map")
    if not isinstance(meta, dict) or "rows" not in meta:
        raise ValueError("office map TOML needs a [map] table with 'rows'")
    tile_size = int(meta.get("tile_size", 48))
    units = meta.get("zone_units", "tiles")
    scale = tile_size if units == "tiles" else 1

    zones: list[Zone] = []
    tables = data.get("zones") or {}
    for category in CATEGORIES:
        for raw in tables.get(category) or []:
            zones.append(_zone_from_dict(raw, category, scale))
    return OfficeMap.from_rows(list(meta["rows"]), tile_size, zones,
                               meta.get("name", default_name))


def load_office_map(path: str | Path) -> OfficeMap:
    """Load an office map from a ``.toml`` or Tiled ``.json`` file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"office map not found: {path}")

    if path.suffix == ".json":
        with open(path, "r", encoding="utf-8") as f:
            office = OfficeMap.from_map_data(json.load(f), path.stem)
    else:
        with open(path, "rb") as f:
            office = _from_toml(tomllib.load(f), path.stem)

    print(f"[MAP] Loaded {office!r} from {path}")
    return office
