#!/usr/bin/env python
"""
Run the Streamlit wrap pricing calculator.

Usage:
    python scripts/run_app.py [--port 8501]

The catalog file is taken from WRAP_PRICING_DATA_FILE (default data/catalog.json).
"""
import argparse
import os
import subprocess
import sys
from pathlib import Path


def main():
    parser = argparse.ArgumentParser(description="Start the wrap pricing calculator")
    parser.add_argument('--port', default=os.environ.get('WRAP_PRICING_UI_PORT', '8501'))
    args = parser.parse_args()

    project_root = Path(__file__).parent.parent
    ui_path = project_root / 'src' / 'wrap_pricing' / 'ui' / 'app_streamlit.py'

    if not ui_path.exists():
        print(f"ERROR: UI module not found at {ui_path}")
        sys.exit(1)

    data_file = os.environ.get('WRAP_PRICING_DATA_FILE', str(project_root / 'data' / 'catalog.json'))
    print(f"Catalog: {data_file}")

    cmd = [sys.executable, '-m', 'streamlit', 'run', str(ui_path), '--server.port', str(args.port)]
    print(f"Starting calculator on port {args.port}")

    try:
        subprocess.run(cmd, cwd=str(project_root))
    except KeyboardInterrupt:
        print("\nCalculator stopped.")


if __name__ == "__main__":
    main()
