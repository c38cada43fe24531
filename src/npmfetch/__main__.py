"""Allow ``python -m npmfetch``."""

import sys

from .cli import main

sys.exit(main())
