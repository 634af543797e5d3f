"""Allow ``python -m termdeck``."""

import sys

from termdeck.cli import main

sys.exit(main())
