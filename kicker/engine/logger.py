import logging

from .money import Amount, fmt_amount


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter('[%(levelname)s] %(name)s: %(message)s')
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


def format_amount_for_logging(amount: Amount) -> str:
    """
    Format an integer amount for log lines.

    Args:
        amount: Integer amount in the smallest unit

    Returns:
        Formatted string like "1,250"
    """
    return fmt_amount(amount)


def short_address(address: str) -> str:
    """First 10 characters of an address, enough to tell opponents apart in logs."""
    return address[:10]
