"""logic/pathfinding.py — A* pathfinding on the office tile grid.

Search
------
4-directional A* with unit move cost and a Manhattan heuristic, which is
admissible and consistent for this move set, so returned paths have the
minimum tile count.  Frontier ties are broken by insertion order, so the
same grid and query always produce the same path.

Blocked endpoints are replaced by the nearest walkable tile found by an
expanding ring search (``pathfinding.nearest_walkable_radius`` rings).
The search gives up after ``2 × tiles_x × tiles_y`` node expansions.

Smoothing
---------
``smooth_path`` drops waypoints the agent can skip: from each anchor it
jumps to the furthest later waypoint whose Bresenham line crosses only
walkable tiles.  Visual straightness, not cost optimality.

Endpoint precision
------------------
Waypoints are tile centres, but destinations usually are not.
``plan_route`` appends the exact destination pixel after smoothing so
the agent never snaps from a tile centre to its real target.

Public API
----------
``find_path(grid, sx, sy, gx, gy)``  → ``list[(x, y)]`` or ``None``
``smooth_path(grid, path)``          → ``list[(x, y)]``
``plan_route(grid, sx, sy, tx, ty)`` → ``list[(x, y)]`` or ``None``
``direction_from_delta(dx, dy)``     → ``"up" | "down" | "left" | "right"``
"""

from __future__ import annotations
import heapq
from typing import TYPE_CHECKING, Optional

from core.tuning import get as _tun

if TYPE_CHECKING:
    from core.office_map import OfficeMap


Point = tuple[float, float]
Tile = tuple[int, int]


# ── 4-directional offsets (up, down, left, right) ────────────────────

_DIRS: tuple[Tile, ...] = ((0, -1), (0, 1), (-1, 0), (1, 0))


def _manhattan(a: Tile, b: Tile) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


# ── Endpoint substitution ────────────────────────────────────────────

def find_nearest_walkable(grid: "OfficeMap", tx: int, ty: int,
                          max_radius: int | None = None) -> Tile | None:
    """Return (*tx*, *ty*) if walkable, else the first walkable tile on
    the nearest ring around it (rings 1..*max_radius*).

    Each ring is scanned column-major from its top-left corner, which
    fixes the choice when several tiles on a ring are walkable.
    """
    if grid.is_walkable(tx, ty):
        return (tx, ty)
    if max_radius is None:
        max_radius = int(_tun("pathfinding", "nearest_walkable_radius", 5))

    for radius in range(1, max_radius + 1):
        for dx in range(-radius, radius + 1):
            for dy in range(-radius, radius + 1):
                if abs(dx) != radius and abs(dy) != radius:
                    continue  # interior, already checked on a smaller ring
                if grid.is_walkable(tx + dx, ty + dy):
                    return (tx + dx, ty + dy)
    return None


# ── A* search ────────────────────────────────────────────────────────

def find_tile_path(grid: "OfficeMap", start: Tile, goal: Tile) -> list[Tile] | None:
    """A* between two tiles.  Returns the tile sequence (start and goal
    included) or ``None`` when unreachable or over the expansion cap."""
    goal = find_nearest_walkable(grid, *goal)
    if goal is None:
        return None
    start = find_nearest_walkable(grid, *start)
    if start is None:
        return None

    if start == goal:
        return [goal]

    dims = grid.map_dimensions()
    max_expansions = dims.tiles_x * dims.tiles_y * 2

    # Open set: (f_score, insertion_seq, tile)
    seq = 0
    open_set: list[tuple[int, int, Tile]] = [(_manhattan(start, goal), seq, start)]
    g_score: dict[Tile, int] = {start: 0}
    came_from: dict[Tile, Tile] = {}
    closed: set[Tile] = set()
    expansions = 0

    while open_set and expansions < max_expansions:
        _f, _seq, current = heapq.heappop(open_set)
        if current in closed:
            continue  # stale: a cheaper copy was already expanded

        if current == goal:
            return _reconstruct(came_from, current)

        closed.add(current)
        expansions += 1

        cx, cy = current
        new_g = g_score[current] + 1
        for dx, dy in _DIRS:
            nb = (cx + dx, cy + dy)
            if nb in closed or not grid.is_walkable(*nb):
                continue
            if new_g < g_score.get(nb, new_g + 1):
                g_score[nb] = new_g
                came_from[nb] = current
                seq += 1
                heapq.heappush(open_set, (new_g + _manhattan(nb, goal), seq, nb))

    return None


def _reconstruct(came_from: dict[Tile, Tile], node: Tile) -> list[Tile]:
    path = [node]
    while node in came_from:
        node = came_from[node]
        path.append(node)
    path.reverse()
    return path


def find_path(grid: "OfficeMap", sx: float, sy: float,
              gx: float, gy: float) -> list[Point] | None:
    """A* between two pixel positions.

    Returns tile-centre pixel waypoints from the start tile to the goal
    tile (both included), or ``None`` if no path exists.
    """
    tiles = find_tile_path(grid, grid.pixel_to_tile(sx, sy),
                           grid.pixel_to_tile(gx, gy))
    if tiles is None:
        return None
    return [grid.tile_to_pixel(tx, ty) for tx, ty in tiles]


# ── Line of sight / smoothing ────────────────────────────────────────

def line_tiles(x0: int, y0: int, x1: int, y1: int) -> list[Tile]:
    """Every tile on the Bresenham line from (x0, y0) to (x1, y1)."""
    tiles: list[Tile] = []
    dx = abs(x1 - x0)
    dy = abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    err = dx - dy

    x, y = x0, y0
    while True:
        tiles.append((x, y))
        if x == x1 and y == y1:
            break
        e2 = 2 * err
        if e2 > -dy:
            err -= dy
            x += sx
        if e2 < dx:
            err += dx
            y += sy
    return tiles


def has_line_of_sight(grid: "OfficeMap", a: Point, b: Point) -> bool:
    """True when every tile on the line between pixel points is walkable."""
    ax, ay = grid.pixel_to_tile(*a)
    bx, by = grid.pixel_to_tile(*b)
    return all(grid.is_walkable(tx, ty) for tx, ty in line_tiles(ax, ay, bx, by))


def smooth_path(grid: "OfficeMap", path: Optional[list[Point]]) -> Optional[list[Point]]:
    """Greedy line-of-sight pruning.  First and last points are kept;
    paths shorter than 3 are returned as-is."""
    if not path or len(path) < 3:
        return path

    smoothed = [path[0]]
    current = 0
    last = len(path) - 1
    while current < last:
        furthest = current + 1
        for i in range(current + 2, len(path)):
            if has_line_of_sight(grid, path[current], path[i]):
                furthest = i
        smoothed.append(path[furthest])
        current = furthest
    return smoothed


# ── Route planning (find → smooth → exact endpoint) ──────────────────

def plan_route(grid: "OfficeMap", sx: float, sy: float,
               tx: float, ty: float) -> list[Point] | None:
    """Waypoints from (*sx*, *sy*) ending exactly on (*tx*, *ty*)."""
    raw = find_path(grid, sx, sy, tx, ty)
    if not raw:
        return None
    path = list(smooth_path(grid, raw))
    if path[-1] != (tx, ty):
        path.append((tx, ty))
    return path


# ── Direction helpers ────────────────────────────────────────────────

def direction_from_delta(dx: float, dy: float) -> str:
    """Cardinal facing for a movement vector.

    The larger axis wins; equal magnitudes face vertically.
    """
    if abs(dx) > abs(dy):
        return "right" if dx > 0 else "left"
    return "down" if dy > 0 else "up"


def facing_to_direction(facing: str | None) -> str | None:
    """Map a zone's ``facing`` ('away' / 'toward') to a direction."""
    if facing == "away":
        return "up"
    if facing == "toward":
        return "down"
    return None
