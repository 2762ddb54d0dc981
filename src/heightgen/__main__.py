"""Allow ``python -m heightgen``."""

import sys

from .cli import main

sys.exit(main())
