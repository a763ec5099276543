"""Allow running as python -m npmdash."""

import sys

from .cli import main

sys.exit(main())
