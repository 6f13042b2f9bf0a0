#!/usr/bin/env python3
"""
main.py — Quick-start entry point.

Drop source images into ``images/`` and tiles into ``tiles/``, then run:

    python main.py batch

Or use the full CLI:

    python -m tile_mosaic.cli batch --help
    python -m tile_mosaic.cli single my_photo.jpg tiles/
"""

from tile_mosaic.cli import app

if __name__ == "__main__":
    app()
