"""Entry point for `python -m cmdscribe`; errors are handled by cli.main()."""

from __future__ import annotations

import sys

from cmdscribe.cli import main


if __name__ == "__main__":
    sys.exit(main())
