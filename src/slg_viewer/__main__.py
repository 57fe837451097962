"""Module entrypoint.

Allows:
    python -m slg_viewer
"""

from __future__ import annotations

from slg_viewer.server.viewer_server import main

if __name__ == "__main__":
    main()
