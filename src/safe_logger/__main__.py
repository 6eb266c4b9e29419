"""Module entrypoint.

Allows:
    python -m safe_logger "message"
"""

from __future__ import annotations

from safe_logger.cli import main

if __name__ == "__main__":
    main()
