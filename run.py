#!/usr/bin/env python3
"""
Convert media and place it into empty Resolume clip slots.

Loads the Resolume HTTP connection from settings/connections.yaml (or
--base-url), then dispatches to the converter commands, e.g.:

  python run.py layers
  python run.py convert audio ./incoming ./audio
  python run.py convert video ./incoming ./video
  python run.py convert place ./audio ./video 2 4
"""

import sys

from resolume_converter.cli import main

if __name__ == "__main__":
    sys.exit(main())
