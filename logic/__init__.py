"""logic — Office movement and state systems.

Modules
-------
pathfinding   grid A*, nearest-walkable fallback, path smoothing, routes
workstations  exclusive desk assignment
state_queue   per-agent request queue and transition start
movement      path following and arrival
wander        autonomous wandering for THINKING / IDLE
tick          per-frame update pipeline
"""
