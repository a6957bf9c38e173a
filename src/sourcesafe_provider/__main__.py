"""
Entry point for the sourcesafe-provider package.

This module is called when the package is run as a script:
    python -m sourcesafe_provider
"""

import sys
from sourcesafe_provider.cli import main

if __name__ == '__main__':
    sys.exit(main())
