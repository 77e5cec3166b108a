from .build_log import BuildLog, BuildLogHandler, LoggingCollector

__all__ = [
    'BuildLog',
    'BuildLogHandler',
    'LoggingCollector',
]
