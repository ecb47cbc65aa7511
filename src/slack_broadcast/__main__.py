"""Allow ``python -m slack_broadcast``."""

import sys

from slack_broadcast.cli import main

sys.exit(main())
