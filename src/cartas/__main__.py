"""Cartas entrypoint.

Run with:
  python -m cartas
"""

import uvicorn

from cartas.config import server_options


def main() -> None:
    opts = server_options()
    uvicorn.run("cartas.app:create_app", factory=True, **opts)


if __name__ == "__main__":
    main()
