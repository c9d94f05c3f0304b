"""Main module.

This module belongs to `ojt_export` in the ojt-report-export codebase.
"""

from ojt_export.launch import main


if __name__ == "__main__":
    raise SystemExit(main())
