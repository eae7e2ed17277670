"""
Entry Point Script (Bootstrap)
==============================
Runs the demo of ``pentagrammap.__main__`` from a source checkout.

Why is this file needed?
------------------------
1. It is located outside the 'src' package to act as a convenient runner.
2. It modifies 'sys.path' so that 'pentagrammap' resolves without an install.

Usage:
    $ python run.py
"""
import logging
import os
import sys

current_dir: str = os.path.dirname(os.path.abspath(__file__))
src_path: str = os.path.join(current_dir, 'src')
sys.path.insert(0, src_path)

from pentagrammap.__main__ import main
from pentagrammap.logging_config import setup_logging

if __name__ == "__main__":
    setup_logging(logging.INFO)
    main()
