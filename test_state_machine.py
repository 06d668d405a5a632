"""test_state_machine.py — Queue, transitions, desks and arrival.

Runs agents through a small fixture office with seeded RNG and a
driven clock (dt = 0.1 s → 100 ms per tick).

Run:  python test_state_machine.py   (or pytest)
"""
from __future__ import annotations
import sys, traceback

# ── Bootstrap ────────────────────────────────────────────────────────
from core.tuning import load as _load_tuning
_load_tuning()

from core.office_map import OfficeMap, Zone
from components.agent import (
    QueuedState, SPAWNED, THINKING, PLANNING, CODING, IDLE,
)
from logic.state_queue import (
    process_state_queue, queue_state_change, resolve_target_zone,
    _collapse_duplicates,
)
from logic.tick import update_agent
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

DT = 0.1   # 100 ms


# ── Fixture office ───────────────────────────────────────────────────
#
# 12×8 tiles of 16 px, open floor inside a wall border.
#   ws_a, ws_b    desks on row 1 (facing away)
#   plan_1        meeting spot on row 1 (facing toward)
#   think_1       thinking area, cols 1-4 rows 4-6
#   idle_1/2      two lounges, cols 6-7 and 9-10 rows 4-6

ROWS = ["############"] + ["#..........#" for _ in range(6)] + ["############"]


def _office(desks: int = 2, planning: bool = True) -> OfficeMap:
    zones = []
    for i, x in enumerate((16, 64)[:desks]):
        zones.append(Zone(f"ws_{'ab'[i]}", "work", x, 16, 32, 16, facing="away"))
    if planning:
        zones.append(Zone("plan_1", "plan", 128, 16, 32, 16, facing="toward"))
    zones.append(Zone("think_1", "think", 16, 64, 64, 48))
    zones.append(Zone("idle_1", "idle", 96, 64, 32, 48))
    zones.append(Zone("idle_2", "idle", 144, 64, 32, 48))
    return OfficeMap.from_rows(ROWS, tile_size=16, zones=zones, name="fixture")


def _sim(**kw) -> OfficeSim:
    return OfficeSim(_office(**kw), seed=7)


def _run_until(sim: OfficeSim, pred, max_ticks: int = 400) -> bool:
    for _ in range(max_ticks):
        sim.tick(DT)
        if pred():
            return True
    return False


def _settle(agent, state: str, x: float, y: float, now: float):
    """Place *agent* as if it had just arrived in *state* at (x, y)."""
    agent.visual_state = state
    agent.state = state
    agent.x, agent.y = x, y
    agent.current_state_start_time = now


# ═══════════════════════════════════════════════════════════════════════
#  1. Queue processing
# ═══════════════════════════════════════════════════════════════════════

def test_min_display_time():
    print("\n=== 1a: Minimum display time ===")
    sim = _sim()
    a = sim.spawn("s1")
    sim.clock.now = 4000.0

    sim.set_state(a.id, PLANNING)
    sim.set_state(a.id, CODING)
    sim.tick(DT)
    check(a.is_moving and a.target_state == PLANNING,
          "First queued state starts immediately", f"target={a.target_state}")
    check(a.queued_states() == [CODING], "Second state stays queued")

    check(_run_until(sim, lambda: not a.is_moving), "Reached planning zone")
    arrived_at = a.current_state_start_time
    check(a.visual_state == PLANNING, "Now PLANNING")

    held = True
    while sim.clock.now + 100.0 - arrived_at < 4000.0:
        sim.tick(DT)
        if a.is_moving or a.queued_states() != [CODING]:
            held = False
            break
    check(held, "CODING held while under 4000 ms in PLANNING")

    sim.tick(DT)
    check(sim.clock.now - arrived_at == 4000.0, "Exactly 4000 ms elapsed")
    check(a.is_moving and a.target_state == CODING,
          "CODING starts once 4000 ms have elapsed")


def test_first_transition_waits_after_spawn():
    print("\n=== 1b: Spawn counts as a displayed state ===")
    sim = _sim()
    a = sim.spawn("s1")
    sim.set_state(a.id, IDLE)
    sim.tick(DT)
    check(not a.is_moving and a.queued_states() == [IDLE],
          "Freshly spawned agent waits before moving")
    sim.clock.now = 3999.0
    process_state_queue(sim, a)
    check(not a.is_moving, "Still waiting at 3999 ms")
    sim.clock.now = 4000.0
    process_state_queue(sim, a)
    check(a.is_moving and a.target_state == IDLE, "Moves at 4000 ms")


def test_duplicate_collapse():
    print("\n=== 1c: Consecutive duplicates collapse ===")
    q = [QueuedState(s) for s in (THINKING, THINKING, PLANNING, PLANNING,
                                  PLANNING, THINKING, IDLE, IDLE)]
    _collapse_duplicates(q)
    check([e.state for e in q] == [THINKING, PLANNING, THINKING, IDLE],
          "Each run reduced to its first entry", f"got {[e.state for e in q]}")

    sim = _sim()
    a = sim.spawn("s1")
    for s in (THINKING, THINKING, THINKING, PLANNING):
        queue_state_change(sim, a, s)
    first_ts = a.state_queue[0].queued_at
    sim.clock.now = 5000.0
    process_state_queue(sim, a)
    check(a.target_state == THINKING, "THINKING popped")
    check(a.queued_states() == [PLANNING], "Duplicates dropped, PLANNING kept")
    check(first_ts == 0.0, "Queue entries stamped with queue time")


def test_same_state_discarded():
    print("\n=== 1d: Request for current state is dropped ===")
    sim = _sim()
    a = sim.spawn("s1")
    _settle(a, PLANNING, 144.0, 24.0, 0.0)
    sim.clock.now = 5000.0
    queue_state_change(sim, a, PLANNING)
    process_state_queue(sim, a)
    check(not a.state_queue, "Queue emptied")
    check(not a.is_moving and a.target_state is None, "No movement started")
    check(a.current_state_start_time == 0.0, "Display timer untouched")


def test_moving_agent_not_interrupted():
    print("\n=== 1e: New requests don't cancel movement ===")
    sim = _sim()
    a = sim.spawn("s1")
    sim.clock.now = 4000.0
    sim.set_state(a.id, PLANNING)
    sim.tick(DT)
    path_before = list(a.path)
    sim.set_state(a.id, IDLE)
    sim.clock.now += 10000.0
    process_state_queue(sim, a)
    check(a.target_state == PLANNING and a.path == path_before,
          "Current path kept while moving")
    check(a.queued_states() == [IDLE], "IDLE waits behind the walk")


def test_requeue_when_no_zone():
    print("\n=== 1f: Unresolvable requests requeue at the front ===")
    sim = _sim(planning=False)
    a = sim.spawn("s1")
    sim.clock.now = 5000.0
    sim.set_state(a.id, PLANNING)
    sim.set_state(a.id, IDLE)
    for _ in range(20):
        sim.tick(DT)
    check(a.queued_states() == [PLANNING, IDLE],
          "PLANNING kept at the front and blocks IDLE", f"got {a.queued_states()}")
    check(not a.is_moving and a.visual_state == SPAWNED, "Agent stays put")
    reasons = [e["details"]["reason"] for e in sim.dev_log.for_cat("state")
               if e["details"] and "reason" in e["details"]]
    check("no zone" in reasons, "Requeue recorded in dev log")


def test_resolve_target_zone():
    print("\n=== 1g: Zone resolution per state ===")
    sim = _sim()
    a = sim.spawn("s1")
    desk = resolve_target_zone(sim, a, CODING)
    check(desk is not None and desk.id == "ws_a", "CODING claims first desk")
    again = resolve_target_zone(sim, a, CODING)
    check(again is desk, "CODING reuses the held desk")

    plan = resolve_target_zone(sim, a, PLANNING)
    check(plan.id == "plan_1" and plan.point == (144.0, 24.0),
          "PLANNING targets the zone centre")

    think = resolve_target_zone(sim, a, THINKING)
    base = sim.office_map.zone_by_id("think_1")
    check(think.id == "think_1" and think is not base, "THINKING gets a transient copy")
    inset = (base.x + 8 <= think.center_x <= base.x + base.width - 8
             and base.y + 8 <= think.center_y <= base.y + base.height - 8)
    check(inset, "Random point is inset by the padding",
          f"{think.point}")

    idle = resolve_target_zone(sim, a, IDLE)
    check(idle.id in ("idle_1", "idle_2") and idle.category == "idle",
          "IDLE picks an idle zone")


# ═══════════════════════════════════════════════════════════════════════
#  2. Workstations
# ═══════════════════════════════════════════════════════════════════════

def _fill_desks():
    """Four agents, two desks, everyone asked to code for 30 s."""
    sim = _sim(desks=2)
    agents = [sim.spawn(f"s{i}") for i in range(4)]
    sim.clock.now = 4000.0
    for ag in agents:
        sim.set_state(ag.id, CODING)
    for _ in range(300):
        sim.tick(DT)
    return sim, agents


def test_workstation_exclusivity():
    print("\n=== 2a: K desks, N agents ===")
    sim, agents = _fill_desks()

    coding = [ag for ag in agents if ag.visual_state == CODING]
    waiting = [ag for ag in agents if ag.queued_states() == [CODING]]
    check(len(coding) == 2, "Exactly two agents coding", f"got {len(coding)}")
    check(len(waiting) == 2, "Other two still queued", f"got {len(waiting)}")
    check(all(not ag.is_moving for ag in waiting), "Waiting agents stay put")

    desks = {sim.workstations.workstation_of(ag.id).id for ag in coding}
    check(desks == {"ws_a", "ws_b"}, "Each desk has one coder")
    for ag in coding:
        desk = sim.workstations.workstation_of(ag.id)
        check(sim.workstations.occupant(desk.id) == ag.id,
              f"{desk.id} maps back to its agent")
    check(sim.assignment_stats() == {"total": 2, "assigned": 2, "available": 0},
          "Stats report a full office")


def test_release_on_leaving_coding():
    print("\n=== 2b: Leaving CODING frees the desk ===")
    sim, agents = _fill_desks()
    coder = next(ag for ag in agents if ag.visual_state == CODING)
    desk_id = sim.workstations.workstation_of(coder.id).id

    sim.set_state(coder.id, IDLE)
    check(_run_until(sim, lambda: coder.is_moving, max_ticks=60),
          "Coder starts walking away")
    check(sim.workstations.workstation_of(coder.id) is None
          and sim.workstations.occupant(desk_id) != coder.id,
          "Desk freed on the tick the walk starts",
          f"occupant {sim.workstations.occupant(desk_id)}")
    for _ in range(300):
        sim.tick(DT)

    check(coder.visual_state == IDLE, "Former coder is IDLE")
    check(sim.workstations.workstation_of(coder.id) is None, "Former coder holds no desk")
    check(sim.workstations.release(coder.id) is None, "Desk was released exactly once")

    new_holder = sim.workstations.occupant(desk_id)
    check(new_holder is not None and new_holder != coder.id,
          "A waiting agent took the freed desk")
    check(sim.agents[new_holder].visual_state == CODING, "New holder is coding")
    still_waiting = [ag for ag in agents if ag.queued_states() == [CODING]]
    check(len(still_waiting) == 1, "One agent still waiting")


def test_despawn_releases_desk():
    print("\n=== 2c: Despawn frees the desk ===")
    sim = _sim(desks=1)
    a = sim.spawn("s1")
    b = sim.spawn("s2")
    sim.clock.now = 4000.0
    sim.set_state(a.id, CODING)
    sim.set_state(b.id, CODING)
    sim.tick(DT)
    check(sim.workstations.occupant("ws_a") == a.id, "First agent claims the desk")
    sim.despawn(a.id)
    check(not sim.workstations.is_occupied("ws_a"), "Desk free after despawn")
    check(_run_until(sim, lambda: b.visual_state == CODING), "Second agent gets it")


# ═══════════════════════════════════════════════════════════════════════
#  3. Arrival
# ═══════════════════════════════════════════════════════════════════════

def test_arrival_exact_point_and_facing():
    print("\n=== 3a: Arrival snaps to the target point ===")
    sim = _sim()
    a = sim.spawn("s1")
    sim.clock.now = 4000.0
    sim.set_state(a.id, CODING)
    check(_run_until(sim, lambda: a.visual_state == CODING), "Reached desk")
    check((a.x, a.y) == (32.0, 24.0), "Exactly on desk centre", f"({a.x}, {a.y})")
    check(a.direction == "up", "Desk facing away → up")
    check(a.path == [] and a.path_index == 0, "Path cleared")
    check(a.target_state is None and a.target_zone is None, "Targets cleared")
    check(a.wander_zone is None, "No wander zone while coding")

    sim.clock.now += 4000.0
    sim.set_state(a.id, PLANNING)
    check(_run_until(sim, lambda: a.visual_state == PLANNING), "Reached meeting spot")
    check(a.direction == "down", "Facing toward → down")


def test_arrival_thinking_point():
    print("\n=== 3b: THINKING arrives on its random point ===")
    sim = _sim()
    a = sim.spawn("s1")
    sim.clock.now = 4000.0
    sim.set_state(a.id, THINKING)
    sim.tick(DT)
    target = a.target_zone
    check(target is not None and target.id == "think_1", "Heading to think_1")
    check(_run_until(sim, lambda: not a.is_moving), "Arrived")
    check((a.x, a.y) == target.point, "Position equals the random target point",
          f"({a.x}, {a.y}) vs {target.point}")
    check(a.wander_zone is sim.office_map.zone_by_id("think_1"),
          "Wander zone is the map's zone, not the transient copy")
    now = sim.clock.now
    check(now + 3000.0 <= a.next_wander_time < now + 6000.0,
          "Next wander scheduled 3-6 s out", f"{a.next_wander_time - now:.0f} ms")

    events = []
    sim.bus.subscribe("AgentArrived", events.append)
    sim.set_state(a.id, IDLE)
    sim.clock.now += 4000.0
    _run_until(sim, lambda: a.visual_state == IDLE)
    check(any(e.visual_state == IDLE for e in events), "AgentArrived emitted")


# ═══════════════════════════════════════════════════════════════════════
#  4. Update order
# ═══════════════════════════════════════════════════════════════════════

def test_transition_suppresses_wander():
    print("\n=== 4a: Queue beats wander in the same tick ===")
    sim = _sim()
    a = sim.spawn("s1")
    think = sim.office_map.zone_by_id("think_1")
    _settle(a, THINKING, *think.point, 0.0)
    a.wander_zone = think
    a.next_wander_time = 0.0
    sim.clock.now = 5000.0
    queue_state_change(sim, a, PLANNING)

    update_agent(sim, a, DT)
    check(a.is_moving and a.target_state == PLANNING, "Transition started")
    check(a.next_wander_time == 0.0, "Wander check skipped this tick")

    b = sim.spawn("s2")
    _settle(b, THINKING, *think.point, 0.0)
    b.wander_zone = think
    b.next_wander_time = 0.0
    update_agent(sim, b, DT)
    check(b.next_wander_time > sim.clock.now, "Without a queued state, wander runs")


# ═══════════════════════════════════════════════════════════════════════
#  MAIN
# ═══════════════════════════════════════════════════════════════════════

if __name__ == "__main__":
    sections = [
        ("Min display time", test_min_display_time),
        ("Spawn wait", test_first_transition_waits_after_spawn),
        ("Duplicate collapse", test_duplicate_collapse),
        ("Same state", test_same_state_discarded),
        ("No interrupt", test_moving_agent_not_interrupted),
        ("Requeue", test_requeue_when_no_zone),
        ("Zone resolution", test_resolve_target_zone),
        ("Desk exclusivity", test_workstation_exclusivity),
        ("Desk release", test_release_on_leaving_coding),
        ("Despawn release", test_despawn_releases_desk),
        ("Arrival", test_arrival_exact_point_and_facing),
        ("Thinking arrival", test_arrival_thinking_point),
        ("Update order", test_transition_suppresses_wander),
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
    print(f"  State Machine Tests: {_passed} passed, {_failed} failed  "
          f"(total {total})")
    print(f"{'=' * 60}")
    sys.exit(1 if _failed else 0)
