#!/usr/bin/env python3
"""Start script for container deployments that properly handles the PORT environment variable."""

import os
import subprocess
import sys

port = os.environ.get("PORT", "8000")

try:
    port_int = int(port)
except ValueError:
    print(f"Warning: Invalid PORT value '{port}', using default 8000", file=sys.stderr)
    port_int = 8000

src_path = os.path.abspath("src")
if not os.path.isdir(src_path):
    print(f"Warning: src directory not found at {src_path}", file=sys.stderr)
    src_path = os.getcwd()

pythonpath = os.environ.get("PYTHONPATH", "")
os.environ["PYTHONPATH"] = f"{src_path}:{pythonpath}" if pythonpath else src_path

# Single worker: the in-memory backend and the per-outlet locks live in this process.
cmd = [
    sys.executable,
    "-m",
    "uvicorn",
    "outlet_queue.main:app",
    "--host",
    "0.0.0.0",
    "--port",
    str(port_int),
    "--proxy-headers",
    "--forwarded-allow-ips", "*",
]

print(f"Starting server on port {port_int}...", file=sys.stderr)
print(f"PYTHONPATH={os.environ['PYTHONPATH']}", file=sys.stderr)

try:
    subprocess.run(cmd, check=True)
except KeyboardInterrupt:
    print("Server stopped", file=sys.stderr)
except subprocess.CalledProcessError as exc:
    print(f"Server exited with code {exc.returncode}", file=sys.stderr)
    sys.exit(exc.returncode)
