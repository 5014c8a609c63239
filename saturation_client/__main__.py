from __future__ import annotations

from saturation_client.launcher import main

if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
