from __future__ import annotations

import argparse
import logging

from isocity.io.save_server import create_app


def main() -> int:
    ap = argparse.ArgumentParser(description="Accept map documents over HTTP and store them in one JSON file")
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=8765)
    ap.add_argument("--target", default="data/maps/city.json")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = create_app(args.target)
    print(f"save endpoint on http://{args.host}:{args.port}/save -> {args.target}")
    app.run(host=args.host, port=args.port, threaded=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
