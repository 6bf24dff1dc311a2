#!/usr/bin/env python
"""
Run the invoice pricing API with uvicorn.

Usage:
    python scripts/run_api.py [--host 127.0.0.1] [--port 8000] [--no-reload]
"""
import argparse
import os
import subprocess
import sys
from pathlib import Path


def main():
    parser = argparse.ArgumentParser(description="Run the invoice pricing API")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--no-reload", action="store_true", help="Disable auto-reload")
    parser.add_argument("--log-level", default="info")
    args = parser.parse_args()

    project_root = Path(__file__).parent.parent

    # src/ must be importable by the uvicorn worker
    env = os.environ.copy()
    src_path = str(project_root / "src")
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [src_path, env.get("PYTHONPATH")]))

    cmd = [
        sys.executable, "-m", "uvicorn", "invoice_pricing.api.main:app",
        "--host", args.host,
        "--port", str(args.port),
        "--log-level", args.log_level,
    ]
    if not args.no_reload:
        cmd.append("--reload")

    print(f"Starting Invoice Pricing API on {args.host}:{args.port}")
    try:
        subprocess.run(cmd, cwd=str(project_root), env=env)
    except KeyboardInterrupt:
        print("\nAPI stopped.")


if __name__ == "__main__":
    main()
