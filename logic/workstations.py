"""logic/workstations.py — Exclusive workstation occupancy.

One ``WorkstationTable`` per office.  It owns both directions of the
mapping (desk → agent and agent → desk) and only ever changes them
together, so the two can't drift apart.

    table = WorkstationTable(office_map)
    desk = table.assign("a1b2c3")      # first free desk, or None
    table.release("a1b2c3")            # no-op if nothing held
"""

from __future__ import annotations
from typing import TYPE_CHECKING

from core.office_map import CATEGORY_WORK

if TYPE_CHECKING:
    from core.office_map import OfficeMap, Zone


class WorkstationTable:
    def __init__(self, office_map: "OfficeMap"):
        self._map = office_map
        self._occupant: dict[str, str] = {}     # zone id → agent id
        self._desk_of: dict[str, str] = {}      # agent id → zone id

    # ── Mutations ────────────────────────────────────────────────────

    def assign(self, agent_id: str) -> "Zone | None":
        """Return *agent_id*'s desk, claiming the first free one (in map
        order) if it has none.  ``None`` when every desk is taken."""
        held = self.workstation_of(agent_id)
        if held is not None:
            return held

        for desk in self._map.zones_of(CATEGORY_WORK):
            if desk.id not in self._occupant:
                self._occupant[desk.id] = agent_id
                self._desk_of[agent_id] = desk.id
                return desk
        return None

    def release(self, agent_id: str) -> str | None:
        """Free *agent_id*'s desk.  Returns the released zone id, if any."""
        zone_id = self._desk_of.pop(agent_id, None)
        if zone_id is not None:
            self._occupant.pop(zone_id, None)
        return zone_id

    def clear(self) -> None:
        self._occupant.clear()
        self._desk_of.clear()

    # ── Queries ──────────────────────────────────────────────────────

    def workstation_of(self, agent_id: str) -> "Zone | None":
        zone_id = self._desk_of.get(agent_id)
        if zone_id is None:
            return None
        return self._map.zone_by_id(zone_id)

    def is_occupied(self, zone_id: str) -> bool:
        return zone_id in self._occupant

    def occupant(self, zone_id: str) -> str | None:
        return self._occupant.get(zone_id)

    def stats(self) -> dict[str, int]:
        total = len(self._map.zones_of(CATEGORY_WORK))
        assigned = len(self._occupant)
        return {
            "total": total,
            "assigned": assigned,
            "available": total - assigned,
        }

    def __len__(self) -> int:
        return len(self._occupant)

    def __repr__(self) -> str:
        s = self.stats()
        return f"WorkstationTable({s['assigned']}/{s['total']} assigned)"
