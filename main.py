"""Launch `pickup-timer` from a checkout.

`python -m main plan AA1234 --from Home --airport JFK` or `python -m main serve`
run the same typer app as the installed `pickup-timer` script, with `src/` put
on the import path first.
"""

from __future__ import annotations

import sys
from pathlib import Path


def main() -> None:
    project_root = Path(__file__).resolve().parent
    src = project_root / "src"
    if str(src) not in sys.path:
        sys.path.insert(0, str(src))

    from cli.main import run  # noqa: PLC0415

    run()


if __name__ == "__main__":
    main()
