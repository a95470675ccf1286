"""
Run the server directly.

Usage:
    python -m doppelganger
    python -m doppelganger --port 8000 --mirror /srv/mirrors
"""

from .main import cli

if __name__ == "__main__":
    cli()
