import logging
import logging.config
import os


def configure_logging() -> None:
    """
    Configure root logging for a process entry point.

    ``LOGGING_CONFIG`` names a ``fileConfig`` file; otherwise ``LOG_LEVEL``
    (default INFO) is applied with a plain format.
    """
    log_conf = os.environ.get('LOGGING_CONFIG')
    if log_conf:
        logging.config.fileConfig(log_conf, disable_existing_loggers=False)
    else:
        logging.basicConfig(
            level=os.environ.get('LOG_LEVEL', 'INFO'),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
