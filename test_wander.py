"""test_wander.py — Autonomous wandering for THINKING and IDLE agents.

Wander cycles are driven directly: each cycle forces the agent due,
runs ``update_wandering`` and, if a walk was installed, completes it
with ``arrive_at_destination``.

Run:  python test_wander.py   (or pytest)
"""
from __future__ import annotations
import sys, traceback

# ── Bootstrap ────────────────────────────────────────────────────────
from core.tuning import load as _load_tuning
_load_tuning()

from core.office_map import OfficeMap, Zone
from components.agent import THINKING, CODING, IDLE, PLANNING
from logic.movement import arrive_at_destination
from logic.wander import update_wandering, schedule_next_wander
from simulation.office_sim import OfficeSim


# ── Test harness ─────────────────────────────────────────────────────

_passed = 0
_failed = 0

def ok(label: str):
    global _passed
    _passed += 1
    print(f"  [PASS] {label}")

def fail(label: str, detail: str = ""):
    global _failed
    _failed += 1
    msg = f"  [FAIL] {label}"
    if detail:
        msg += f" — {detail}"
    print(msg)

def check(cond: bool, label: str, detail: str = ""):
    if cond:
        ok(label)
    else:
        fail(label, detail)
        raise AssertionError(f"{label} {detail}".strip())


# ── Fixture office ───────────────────────────────────────────────────

ROWS = ["############"] + ["#..........#" for _ in range(6)] + ["############"]


def _sim(seed: int = 3) -> OfficeSim:
    zones = [
        Zone("think_1", "think", 16, 64, 64, 48),
        Zone("think_2", "think", 96, 16, 48, 32),
        Zone("idle_1", "idle", 96, 64, 32, 48),
        Zone("idle_2", "idle", 144, 64, 32, 48),
    ]
    office = OfficeMap.from_rows(ROWS, tile_size=16, zones=zones, name="fixture")
    return OfficeSim(office, seed=seed)


def _settled(sim: OfficeSim, state: str, zone_id: str):
    a = sim.spawn("w")
    zone = sim.office_map.zone_by_id(zone_id)
    a.visual_state = a.state = state
    a.x, a.y = zone.point
    return a


def _cycle(sim: OfficeSim, agent):
    """One due wander check, completed to arrival if it moved.
    Returns the transient target zone (or None)."""
    agent.next_wander_time = sim.clock.now
    update_wandering(sim, agent)
    target = agent.target_zone
    if agent.is_moving:
        arrive_at_destination(sim, agent)
    sim.clock.now += 1000.0
    return target


# ═══════════════════════════════════════════════════════════════════════
#  1. THINKING
# ═══════════════════════════════════════════════════════════════════════

def test_thinking_stays_in_zone():
    print("\n=== 1a: THINKING wander is confined ===")
    sim = _sim()
    a = _settled(sim, THINKING, "think_1")
    a.wander_zone = sim.office_map.zone_by_id("think_1")
    home = a.wander_zone

    moves = 0
    for _ in range(40):
        target = _cycle(sim, a)
        if target is None:
            continue
        moves += 1
        if target.id != home.id or a.wander_zone.id != home.id:
            check(False, "Target zone matches wander zone",
                  f"target={target.id} wander={a.wander_zone.id}")
        if not home.contains(a.x, a.y):
            check(False, "Agent stays inside think_1", f"({a.x}, {a.y})")
        if a.current_speed != 150.0:
            check(False, "THINKING wanders at full speed", f"{a.current_speed}")
    check(moves >= 30, f"{moves} confined wander walks")


def test_thinking_zone_fallbacks():
    print("\n=== 1b: Zone choice without a recorded wander zone ===")
    sim = _sim()
    a = _settled(sim, THINKING, "think_2")
    a.next_wander_time = 0.0
    update_wandering(sim, a)
    check(a.wander_zone is sim.office_map.zone_by_id("think_2"),
          "Containing zone adopted")

    b = _settled(sim, THINKING, "idle_2")  # outside every thinking zone
    b.next_wander_time = 0.0
    update_wandering(sim, b)
    check(b.wander_zone is not None and b.wander_zone.category == "think",
          "Random thinking zone when not inside one")


# ═══════════════════════════════════════════════════════════════════════
#  2. IDLE
# ═══════════════════════════════════════════════════════════════════════

def test_idle_roams_between_zones():
    print("\n=== 2a: IDLE visits several lounges ===")
    sim = _sim()
    a = _settled(sim, IDLE, "idle_1")
    seen: set[str] = set()
    speeds: list[float] = []
    for _ in range(50):
        target = _cycle(sim, a)
        if target is not None:
            seen.add(target.id)
            speeds.append(a.current_speed)
    check(len(seen) >= 2, "At least two idle zones visited", f"seen={sorted(seen)}")
    check(all(60.0 <= s < 120.0 for s in speeds),
          "Idle speed within 40-80% of full", f"min={min(speeds)} max={max(speeds)}")
    check(len(set(speeds)) > 1, "Speed re-rolled per cycle")
    check(a.visual_state == IDLE, "Still IDLE after wandering")


def test_wander_target_state():
    print("\n=== 2b: Wander walk keeps the current visual state ===")
    sim = _sim()
    a = _settled(sim, IDLE, "idle_1")
    a.next_wander_time = 0.0
    update_wandering(sim, a)
    check(a.is_moving, "Wander walk installed")
    check(a.target_state == IDLE, "Target state is the current state")
    check(len(a.path) > 1 and a.path[-1] == a.target_zone.point,
          "Path ends on the wander point")


# ═══════════════════════════════════════════════════════════════════════
#  3. Scheduling and non-wander states
# ═══════════════════════════════════════════════════════════════════════

def test_not_due_is_noop():
    print("\n=== 3a: Not due yet ===")
    sim = _sim()
    a = _settled(sim, IDLE, "idle_1")
    sim.clock.now = 1000.0
    a.next_wander_time = 2000.0
    update_wandering(sim, a)
    check(not a.is_moving and a.next_wander_time == 2000.0, "Nothing happens")


def test_non_wander_states_reset():
    print("\n=== 3b: CODING / PLANNING don't wander ===")
    sim = _sim()
    for state in (CODING, PLANNING):
        a = _settled(sim, state, "think_1")
        a.current_speed = 55.0
        a.wander_zone = sim.office_map.zone_by_id("think_1")
        a.next_wander_time = 0.0
        update_wandering(sim, a)
        check(not a.is_moving, f"{state}: no walk")
        check(a.wander_zone is None, f"{state}: wander zone cleared")
        check(a.current_speed == 150.0, f"{state}: speed reset to full")


def test_schedule_range():
    print("\n=== 3c: Delay drawn from [3000, 6000) ms ===")
    sim = _sim()
    a = sim.spawn("w")
    sim.clock.now = 10000.0
    delays = []
    for _ in range(200):
        schedule_next_wander(sim, a)
        delays.append(a.next_wander_time - sim.clock.now)
    check(all(3000.0 <= d < 6000.0 for d in delays), "All delays in range")
    check(max(delays) - min(delays) > 2000.0, "Delays spread across the range")


def test_failed_route_reschedules():
    print("\n=== 3d: Unreachable lounge ===")
    rows = [
        "##########",
        "#....#...#",
        "#....#...#",
        "#....#...#",
        "##########",
    ]
    office = OfficeMap.from_rows(rows, tile_size=16, zones=[
        Zone("idle_walled", "idle", 96, 16, 48, 48),
    ], name="walled")
    sim = OfficeSim(office, seed=1)
    a = sim.spawn("w")
    sim.teleport(a.id, 32.0, 40.0)
    a.visual_state = IDLE
    sim.clock.now = 500.0
    a.next_wander_time = 0.0
    update_wandering(sim, a)
    check(not a.is_moving and not a.path, "Agent stays put")
    check(3500.0 <= a.next_wander_time < 6500.0, "Next attempt still scheduled",
          f"{a.next_wander_time}")
    msgs = [e["msg"] for e in sim.dev_log.for_agent(a.id)]
    check(any(m.startswith("no route") for m in msgs), "Failure logged")


# ═══════════════════════════════════════════════════════════════════════
#  MAIN
# ═══════════════════════════════════════════════════════════════════════

if __name__ == "__main__":
    sections = [
        ("Thinking confinement", test_thinking_stays_in_zone),
        ("Thinking fallbacks", test_thinking_zone_fallbacks),
        ("Idle roaming", test_idle_roams_between_zones),
        ("Wander target state", test_wander_target_state),
        ("Not due", test_not_due_is_noop),
        ("Non-wander states", test_non_wander_states_reset),
        ("Schedule range", test_schedule_range),
        ("Failed route", test_failed_route_reschedules),
    ]

    for name, fn in sections:
        try:
            fn()
        except AssertionError:
            pass
        except Exception:
            _failed += 1
            print(f"\n  [CRASH] {name} — unhandled exception:")
            traceback.print_exc()

    total = _passed + _failed
    print(f"\n{'=' * 60}")
    print(f"  Wander Tests: {_passed} passed, {_failed} failed  "
          f"(total {total})")
    print(f"{'=' * 60}")
    sys.exit(1 if _failed else 0)
