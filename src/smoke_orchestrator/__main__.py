"""Entry point: ``python -m src.smoke_orchestrator``."""
from __future__ import annotations

from src.smoke_orchestrator.cli import main

if __name__ == "__main__":
    main()
