"""simulation — The office world object.

Submodules
----------
office_sim   OfficeSim — agents, desks, clock, rng, event bus, per-frame tick
"""
