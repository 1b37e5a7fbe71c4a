#!/usr/bin/env python3
"""
run_scamshield.py — start the local scamshield API from the project root.
Uses scamshield_config.json in this directory (created on first config change).

  python run_scamshield.py             # API on 127.0.0.1:8766
  python run_scamshield.py --port 9000
"""

import argparse
import logging
import sys
from pathlib import Path


def main():
    parser = argparse.ArgumentParser(description="scamshield — local API server")
    parser.add_argument("--port", type=int, default=8766, help="Port to bind (default: 8766)")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind (default: 127.0.0.1)")
    args = parser.parse_args()

    root = Path(__file__).parent
    sys.path.insert(0, str(root))

    logging.basicConfig(
        level   = logging.INFO,
        format  = '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt = '%H:%M:%S',
    )

    from scamshield.api import serve
    serve(config_dir=root, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
