"""Logger factory shared by the integration modules."""

import logging

PACKAGE_LOGGER = "depth_integration"


def _package_logger() -> logging.Logger:
    logger = logging.getLogger(PACKAGE_LOGGER)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            fmt='[%(asctime)s] [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        # Records stop here so a configured root logger does not print them twice.
        logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a module logger whose records go through the package's single handler."""
    package_logger = _package_logger()
    if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + "."):
        return logging.getLogger(name)
    return package_logger.getChild(name)
