"""Entry point: ``python -m src.fixture_server``."""
from __future__ import annotations

from src.fixture_server.main import serve

if __name__ == "__main__":
    serve()
