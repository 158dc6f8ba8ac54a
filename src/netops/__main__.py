"""Run the relay with uvicorn using NETOPS_HOST / PORT."""

from __future__ import annotations

import uvicorn

from netops.core.config import config


def main() -> None:
    uvicorn.run(
        "netops.main:app",
        host=config.server.host,
        port=config.server.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
