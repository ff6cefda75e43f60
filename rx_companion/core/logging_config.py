import logging

from rx_companion.core.schedule_config import LOG_LEVEL

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

def configure_logging() -> None:
    level = getattr(logging, LOG_LEVEL, logging.INFO)
    logging.basicConfig(level=level, format=_FORMAT)
    logging.getLogger("rx_companion").setLevel(level)
