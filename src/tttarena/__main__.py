"""Entry point for running Tic Tac Toe Arena via ``python -m tttarena``."""

from __future__ import annotations

import logging
import os

import uvicorn


def main() -> None:
    """Start the FastAPI-powered Tic Tac Toe Arena web server."""

    host = os.environ.get("TTTARENA_HOST", "0.0.0.0")
    port = int(os.environ.get("TTTARENA_PORT", "8000"))
    level = os.environ.get("TTTARENA_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    uvicorn.run("tttarena.ui:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
