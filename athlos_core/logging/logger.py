import logging

_LOGGERS = {}
_ROOT = "athlos"
_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Attach the console handler to the package root logger.

    Safe to call repeatedly; only the level changes after the first call.
    """
    root = logging.getLogger(_ROOT)
    root.setLevel(level)
    if not any(getattr(h, "_athlos", False) for h in root.handlers):
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter(_FORMAT))
        console._athlos = True
        root.addHandler(console)
    return root


def get_logger(name: str) -> logging.Logger:
    """
    Create or retrieve a named logger under the package root.

    Parameters:
    - name: logger namespace (e.g. goals.resolver, feed.live)
    """
    if name in _LOGGERS:
        return _LOGGERS[name]

    logger = logging.getLogger(f"{_ROOT}.{name}")
    _LOGGERS[name] = logger
    return logger
