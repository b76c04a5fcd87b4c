"""toolcheck CLI entry point."""

from __future__ import annotations

from toolcheck.cli import app

if __name__ == "__main__":
    app()
