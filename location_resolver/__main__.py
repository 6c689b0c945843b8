"""Allow ``python -m location_resolver``."""

import sys

from .cli import main

sys.exit(main())
