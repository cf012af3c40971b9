from __future__ import annotations

from pathlib import Path
import argparse
import logging
from typing import Any

import numpy as np

from isocity.core.model.grid import write_document_atomic
from isocity.core.model.tile import DEFAULT_GROUND


logger = logging.getLogger(__name__)

ROAD_X = "cityTiles_010.png"
ROAD_Y = "cityTiles_009.png"
CROSSROAD = "cityTiles_014.png"


def island_mask(size: int, *, seed: int = 1, roughness: float = 0.15, enabled: bool = True) -> np.ndarray:
    """Boolean ``[x, y]`` mask of land cells: radial falloff with seeded noise."""
    if not enabled:
        return np.ones((size, size), dtype=bool)
    rng = np.random.default_rng(seed)
    center = (size - 1) / 2.0
    xs, ys = np.meshgrid(np.arange(size), np.arange(size), indexing="ij")
    dist = np.hypot(xs - center, ys - center) / max(center, 1.0)
    noise = rng.uniform(-roughness, roughness, size=(size, size))
    return (dist + noise) <= 1.0


def generate_city(
    size: int = 12,
    *,
    seed: int = 1,
    island: bool = False,
    road_reach: int | None = None,
    ground: str = DEFAULT_GROUND,
) -> dict[str, Any]:
    if size < 1:
        raise ValueError(f"size must be >= 1, got {size}")
    mid = max(0, size // 2 - 1)
    reach = road_reach if road_reach is not None else max(0, min(3, mid))
    land = island_mask(size, seed=seed, enabled=island)
    # Roads always stand on land so the crossroad is never cut by the coast.
    land[mid, max(0, mid - reach):mid + reach + 1] = True
    land[max(0, mid - reach):mid + reach + 1, mid] = True

    tiles: list[dict[str, Any]] = []
    for x in range(size):
        for y in range(size):
            if not land[x, y]:
                continue
            sprite = ground
            if x == mid and y == mid:
                sprite = CROSSROAD
            elif y == mid and abs(x - mid) <= reach:
                sprite = ROAD_X
            elif x == mid and abs(y - mid) <= reach:
                sprite = ROAD_Y
            tiles.append({"x": x, "y": y, "ground": sprite})
    return {"size": size, "tiles": tiles}


def main() -> int:
    ap = argparse.ArgumentParser(description="Generate an initial city map document")
    ap.add_argument("--out", default="data/maps/city.json")
    ap.add_argument("--size", type=int, default=12)
    ap.add_argument("--seed", type=int, default=1)
    ap.add_argument("--island", action="store_true", help="Carve an island shape instead of a full square")
    ap.add_argument("--road-reach", type=int, default=None, help="Road cells on each side of the crossroad")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    document = generate_city(args.size, seed=args.seed, island=args.island, road_reach=args.road_reach)
    out = Path(args.out)
    write_document_atomic(out, document)
    print(f"map={out} size={document['size']} tiles={len(document['tiles'])}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
