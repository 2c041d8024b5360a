#!/usr/bin/env python3
"""Cadence entry point.

Run with:
    python main.py
    python -m cadence
"""

from cadence.__main__ import main


if __name__ == "__main__":
    main()
