"""Punto de entrada principal."""

import asyncio
import sys


def main() -> int:
    """Ejecutar aplicación."""
    from .config import get_config
    from .tui.app import main as run_app
    from .utils.logging import setup_logging

    setup_logging(get_config())
    asyncio.run(run_app())
    return 0


if __name__ == "__main__":
    sys.exit(main())
