import logging

from rightsline.config import settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger once for the API and the worker."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
    )
    # SQL echo is controlled by settings.debug, keep the engine logger quiet otherwise
    if not settings.debug:
        logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
