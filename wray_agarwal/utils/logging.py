import sys
from loguru import logger

def setup_logging(level="INFO", show_time=True):
    """Route loguru output to stderr for a closure run.

    Parameters
    ----------
    level : str
        Threshold passed to loguru (DEBUG prints the per-step field ranges).
    show_time : bool
        Prefix each record with a wall-clock timestamp.
    """
    logger.remove()

    log_format = "<level>{level: <8}</level> | <cyan>{name}</cyan> - <level>{message}</level>"
    if show_time:
        log_format = "<green>{time:HH:mm:ss.SSS}</green> | " + log_format

    logger.add(sys.stderr, format=log_format, level=level, colorize=True)

    return logger


def log_field_range(name, values, level="DEBUG"):
    """Log min/max/mean of a field array on one line."""
    logger.log(level, f"  {name:<12} min={values.min():.4e} max={values.max():.4e} "
                      f"mean={values.mean():.4e}")
