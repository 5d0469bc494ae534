from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
BACKEND_ENTRYPOINT = REPO_ROOT / "backend" / "server.py"
ENV_FILE = REPO_ROOT / ".env"


def run_local() -> int:
    if not BACKEND_ENTRYPOINT.is_file():
        print(
            f"[run-local] ERROR: backend entrypoint missing: {BACKEND_ENTRYPOINT}",
            file=sys.stderr,
            flush=True,
        )
        return 1

    if not ENV_FILE.is_file():
        print(
            f"[run-local] No .env at {ENV_FILE}; Firebase and Google Maps stay disabled "
            "unless their variables are exported.",
            flush=True,
        )

    env = dict(os.environ)
    env.setdefault("FLASK_DEBUG", "1")
    print(f"[run-local] Starting backend server on port {env.get('PORT', '8080')}...", flush=True)
    try:
        proc = subprocess.run([sys.executable, str(BACKEND_ENTRYPOINT)], cwd=str(REPO_ROOT), env=env)
        return proc.returncode
    except KeyboardInterrupt:
        print("\n[run-local] Stopped by user.", flush=True)
        return 130


def main() -> int:
    return run_local()


if __name__ == "__main__":
    raise SystemExit(main())
