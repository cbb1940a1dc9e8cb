"""
tabbyqt entry point.
"""
from __future__ import annotations

from tabbyqt.app import TabbyApplication


def main() -> int:
    app = TabbyApplication()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
