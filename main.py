"""
main.py — Bootstrap

1. Load tuning constants
2. Load the office map
3. Create the office simulation
4. Push the office scene and run

    python main.py [path/to/office.toml|map.json] [--seed N] [--agents N]
"""

import argparse
from pathlib import Path

from core import tuning
from core.app import App
from core.office_map import load_office_map
from simulation.office_sim import OfficeSim
from scenes.office_scene import OfficeScene

DEFAULT_MAP = Path(__file__).resolve().parent / "data" / "office.toml"


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(description="Office agent viewer")
    parser.add_argument("map", nargs="?", default=str(DEFAULT_MAP),
                        help="office map (.toml or Tiled .json)")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--agents", type=int, default=0,
                        help="agents to spawn at start")
    args = parser.parse_args(argv)

    tuning.load()
    office = load_office_map(args.map)
    sim = OfficeSim(office, seed=args.seed)
    for n in range(args.agents):
        sim.spawn(f"demo-{n + 1}")

    app = App(sim, title="Office",
              size=(office.pixel_width, office.pixel_height + 24))
    app.push_scene(OfficeScene())
    app.run()


if __name__ == "__main__":
    main()
