from __future__ import annotations

from pathlib import Path
import argparse
import logging

from isocity.gui.pyglet_app import run


def main() -> None:
    root = Path(__file__).resolve().parents[3]
    ap = argparse.ArgumentParser(description="View and edit the isometric city diorama")
    ap.add_argument("--config", default=str(root / "data/config/diorama.json"))
    ap.add_argument("--set", dest="overrides", action="append", default=[], help="Config override key=value")
    ap.add_argument("--edit", action="store_true", help="Start in edit mode")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    overrides = list(args.overrides)
    if args.edit:
        overrides.append("window.edit_mode=true")
    run(args.config, overrides=overrides, base_dir=root)


if __name__ == "__main__":
    main()
