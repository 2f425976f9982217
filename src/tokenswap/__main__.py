"""Run the CLI with python -m tokenswap."""

import sys

from tokenswap.cli import main

sys.exit(main())
