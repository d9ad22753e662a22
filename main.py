#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Main entry point for the progress bar monitor.
This is just a convenience wrapper to run the CLI.
"""

import sys
from pbmonitor.cli import main

if __name__ == "__main__":
    sys.exit(main())
