import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional

from ..core.models import LogEntry, LogLevel, SourceRef


class BuildLog:
    """Ordered sink for the log entries produced by one build."""

    def __init__(self):
        self._entries: List[LogEntry] = []

    def append(self, entry: LogEntry) -> None:
        self._entries.append(entry)

    def extend(self, entries: Iterable[LogEntry]) -> None:
        self._entries.extend(entries)

    @property
    def entries(self) -> List[LogEntry]:
        return list(self._entries)

    def counts(self) -> Dict[str, int]:
        counter = Counter(entry.level.value for entry in self._entries)
        return {level.value: counter.get(level.value, 0) for level in LogLevel}

    def __len__(self) -> int:
        return len(self._entries)


_LEVELS = {
    logging.DEBUG: LogLevel.DEBUG,
    logging.INFO: LogLevel.INFO,
    logging.WARNING: LogLevel.WARNING,
    logging.ERROR: LogLevel.ERROR,
    logging.CRITICAL: LogLevel.ERROR,
}


class BuildLogHandler(logging.Handler):
    """Logging handler that forwards records into a BuildLog."""

    def __init__(self, build_log: BuildLog, level: int = logging.INFO):
        super().__init__(level)
        self.build_log = build_log

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record) if self.formatter else record.getMessage()
            source = None
            source_file = getattr(record, 'source_file', None)
            if source_file:
                source = SourceRef(file=source_file, line=getattr(record, 'source_line', None))
            self.build_log.append(LogEntry(
                level=_LEVELS.get(record.levelno, LogLevel.INFO),
                message=message,
                source=source,
            ))
        except Exception:
            self.handleError(record)


class LoggingCollector:
    """Attaches a BuildLogHandler to a logger for the duration of a build."""

    def __init__(self, build_log: BuildLog, logger_name: str = "appbuilder"):
        self.build_log = build_log
        self.logger_name = logger_name
        self._handler: Optional[BuildLogHandler] = None

    def __enter__(self) -> 'LoggingCollector':
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False

    def start(self, level: int = logging.INFO) -> None:
        self.stop()
        handler = BuildLogHandler(self.build_log, level)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logging.getLogger(self.logger_name).addHandler(handler)
        self._handler = handler

    def stop(self) -> None:
        if self._handler is not None:
            logging.getLogger(self.logger_name).removeHandler(self._handler)
            self._handler = None
