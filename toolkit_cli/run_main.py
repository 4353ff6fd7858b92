from __future__ import annotations

import sys

from .apps.run_cli import main as _main


def main(argv: list[str] | None = None) -> int:
    return _main(argv)


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
