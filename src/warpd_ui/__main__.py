"""Allow ``python -m warpd_ui``."""

import sys

from warpd_ui.cli import main

sys.exit(main())
