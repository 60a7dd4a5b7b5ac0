"""Allow running the tools as ``python -m remediation``."""

import sys

from remediation.cli import main

sys.exit(main())
