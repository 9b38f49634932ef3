#!/usr/bin/env python3
"""
gfsretain Application Entry Point
"""

import sys
from gfsretain.cli import main

if __name__ == '__main__':
    sys.exit(main())
