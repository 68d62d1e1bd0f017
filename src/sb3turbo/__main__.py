"""Package entry point.

    python -m sb3turbo project.sb3
"""

from __future__ import annotations

from sb3turbo.cli import main

if __name__ == "__main__":
    main()
