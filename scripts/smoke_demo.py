from __future__ import annotations

import argparse
import json
import time
import urllib.error
import urllib.request


def fetch(url: str) -> tuple[int, bytes]:
    req = urllib.request.Request(url)
    with urllib.request.urlopen(req, timeout=10) as resp:
        return resp.status, resp.read()


def wait_for(url: str, timeout: int) -> bytes:
    deadline = time.time() + timeout
    last_error: Exception | None = None
    while time.time() < deadline:
        try:
            status, body = fetch(url)
            if status == 200:
                return body
        except (urllib.error.URLError, OSError) as exc:
            last_error = exc
        time.sleep(1)
    raise RuntimeError(f"Timed out waiting for {url}: {last_error}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Smoke test for a running systems server.")
    parser.add_argument("--base", default="http://localhost:8080")
    parser.add_argument("--timeout", type=int, default=60)
    args = parser.parse_args()

    base = args.base.rstrip("/")

    systems = json.loads(wait_for(f"{base}/api/systems", args.timeout).decode("utf-8"))
    if not systems:
        raise RuntimeError("No systems returned")

    system_id = systems[0].get("system_id")
    if not system_id:
        raise RuntimeError("System payload missing system_id")

    view_url = f"{base}/api/systems/{system_id}/view?node=1&labels=true"
    view = json.loads(wait_for(view_url, args.timeout).decode("utf-8"))
    if len(view.get("nodes", [])) != systems[0].get("node_count"):
        raise RuntimeError("View node count does not match the system")
    if view.get("selection", {}).get("selected_node") != 0:
        raise RuntimeError("Node selection was not applied")

    print(f"Smoke test passed for {len(systems)} systems.")


if __name__ == "__main__":
    main()
