#!/usr/bin/env python3
# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""toolbx script entry point.

Delegates to :func:`toolbx.cli.cli`.  Equivalent to the installed
``toolbx`` command.
"""

import sys
from pathlib import Path


# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from toolbx.cli import cli


if __name__ == "__main__":
    cli()
