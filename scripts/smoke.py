#!/usr/bin/env python3
from __future__ import annotations

import os
import sys

from urllib.request import urlopen
from urllib.error import URLError


def main() -> int:
    base_url = os.getenv("TABRELAY_API_URL", "http://localhost:3000")
    health = f"{base_url.rstrip('/')}/health"
    try:
        with urlopen(health, timeout=5) as r:
            body = r.read().decode("utf-8")
            print("/health:", body)
    except (URLError, OSError) as exc:
        print(f"Smoke check failed: {exc}", file=sys.stderr)
        return 1
    if body.strip() != "OK":
        print(f"Unexpected /health body: {body!r}", file=sys.stderr)
        return 1
    print("Smoke check passed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
