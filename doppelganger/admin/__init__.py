"""
Doppelganger Web UI — Browse, mirror, and download repositories.

Routes:
    - /                      local mirrors
    - /src/                  GitHub repositories
    - /<owner>/<repo>        mirror details / create page
    - /<owner>/<repo>.tar.gz mirror download
    - /src/<owner>/<repo>    GitHub repository details
    - /mirror                create | update | track (POST)
    - /apihook               GitHub webhook (POST)
"""

from .server import create_app, run_server

__all__ = ["create_app", "run_server"]
