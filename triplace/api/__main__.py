"""
triplace.api.__main__ — ``python -m triplace.api``
===================================================

Loads ``.env`` and ``config.yaml``, configures console logging, and serves
the FastAPI app with Uvicorn on the configured port.
"""

from __future__ import annotations

import logging
import os

import uvicorn
from dotenv import load_dotenv

from triplace.config import load_config


def main() -> None:
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
        datefmt="%H:%M:%S",
    )
    cfg = load_config(os.getenv("TRIPLACE_CONFIG", "config.yaml"))
    logging.getLogger(__name__).info("Starting %s on port %d", cfg.app_name, cfg.api_port)
    uvicorn.run(
        "triplace.api.main:app",
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=cfg.api_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
