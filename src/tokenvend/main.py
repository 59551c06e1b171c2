from __future__ import annotations

import asyncio
import logging
import os
import sys

import uvicorn

from .env import Settings, get_settings

logger = logging.getLogger("tokenvend")

if sys.platform != "win32":
    import uvloop

    asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _reset_prometheus_multiproc_dir() -> None:
    """Empty PROMETHEUS_MULTIPROC_DIR before workers fork; stale files skew counters."""
    prom_dir = os.environ.get("PROMETHEUS_MULTIPROC_DIR")
    if not prom_dir:
        return

    os.makedirs(prom_dir, exist_ok=True)
    for filename in os.listdir(prom_dir):
        file_path = os.path.join(prom_dir, filename)
        if os.path.isfile(file_path):
            os.remove(file_path)


def main() -> None:
    """Run the TokenVend API under uvicorn."""
    settings = get_settings()
    configure_logging(settings)

    # Uvicorn does not support multiple workers together with reload
    reload = settings.api_debug
    workers = 1 if reload else settings.api_workers
    logger.info(
        "Starting %s v%s on %s:%d (%d worker(s), discos: %s)",
        settings.app_name,
        settings.app_version,
        settings.api_host,
        settings.api_port,
        workers,
        ", ".join(settings.discos),
    )
    if not settings.payment_gateway_secret_key:
        logger.warning("No payment gateway key set; gateway confirmations will fail")

    _reset_prometheus_multiproc_dir()

    uvicorn.run(
        "tokenvend.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=reload,
        workers=workers,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
