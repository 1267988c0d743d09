"""
main.py: server launcher.

    python main.py

Starts uvicorn on the host/port from settings. The application itself lives
in charging_backend/main.py; to run it directly:

    uvicorn charging_backend.main:app --reload
"""

from __future__ import annotations

import uvicorn

from charging_backend.utils.config import get_settings


def main() -> None:
    settings = get_settings()
    print("=" * 60)
    print(f"  {settings.app_name} {settings.app_version}")
    print("=" * 60)
    print(f"  Server   : http://{settings.host}:{settings.port}")
    print(f"  API docs : http://{settings.host}:{settings.port}/docs")
    print(f"  Database : {settings.database_path}")
    print("=" * 60)
    print("  Press CTRL+C to stop\n")

    uvicorn.run(
        "charging_backend.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
