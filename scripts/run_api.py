#!/usr/bin/env python
"""
Run the pricing API locally with auto-reload.

Usage:
    python scripts/run_api.py

Host and port come from BLIND_PRICING_HOST / BLIND_PRICING_PORT.
"""
import os
import sys
from pathlib import Path

import uvicorn

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))


def main():
    host = os.getenv("BLIND_PRICING_HOST", "0.0.0.0")
    port = int(os.getenv("BLIND_PRICING_PORT", "8000"))

    # The reloader re-imports the app in a child process that needs src too.
    os.environ["PYTHONPATH"] = os.pathsep.join(filter(None, [str(src_path), os.getenv("PYTHONPATH")]))

    print(f"Starting Blind Pricing API on http://{host}:{port} ...")
    try:
        uvicorn.run(
            "blind_pricing.api.main:app",
            host=host,
            port=port,
            reload=True,
            reload_dirs=[str(src_path)],
        )
    except KeyboardInterrupt:
        print("\nAPI stopped.")


if __name__ == "__main__":
    main()
