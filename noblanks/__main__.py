"""Allow ``python -m noblanks``."""

from noblanks.main import main

raise SystemExit(main())
