import logging
import os


def setup_logger(name=None,
    log_file: str | None = None,
    level: int | str = logging.INFO,
    mode='a',
    console_handler = True,
    formatter_input: str = '[%(levelname)s] %(name)s: %(message)s'
) -> logging.Logger:
    """
    Configure a logger for scripts and long-running hosts.

    Args:
        name: Logger name, None for the root logger
        log_file: Optional file to append to; its directory is created
        level: Level number or name ("DEBUG", "INFO", ...)
        mode: File mode for the file handler
        console_handler: Attach a stream handler
        formatter_input: Format string shared by all handlers
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level}")

    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.hasHandlers():
        logger.handlers.clear() # avoid duplicate handlers

    formatter = logging.Formatter(formatter_input)

    if console_handler:
        ch = logging.StreamHandler()
        ch.setFormatter(formatter)
        ch.setLevel(level)
        logger.addHandler(ch)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        fh = logging.FileHandler(log_file, mode=mode)
        fh.setFormatter(formatter)
        fh.setLevel(level)
        logger.addHandler(fh)

    return logger
