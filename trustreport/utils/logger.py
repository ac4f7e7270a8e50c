"""Structured logging configuration for the TrustReport service.

Production deployments emit JSON records (python-json-logger) so that log
aggregation can index fields such as ``event_type`` or ``analysis_type``;
development and test environments use a readable single-line format.
"""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger


class TrustReportFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that stamps every record with service metadata."""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        """Add custom fields to log record.

        Args:
            log_record: The log record dictionary to modify
            record: The original logging record
            message_dict: Additional message data
        """
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['module'] = record.module
        log_record['function'] = record.funcName
        log_record['line'] = record.lineno

        log_record['application'] = 'trustreport'
        log_record['service'] = 'report-api'

        if record.exc_info:
            log_record['exception'] = self.formatException(record.exc_info)


class ContextFilter(logging.Filter):
    """Filter that copies a fixed context dict onto every record."""

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__()
        self.context = context or {}

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.context.items():
            setattr(record, key, value)
        return True


class LoggerConfig:
    """Logger configuration manager."""

    COMPONENTS = {
        'api': 'trustreport.api',
        'database': 'trustreport.database',
        'llm': 'trustreport.llm',
        'cache': 'trustreport.cache',
        'reports': 'trustreport.reports',
        'scoring': 'trustreport.scoring',
    }

    def __init__(
        self,
        environment: str = 'development',
        log_level: str = 'INFO',
        log_file: Optional[str] = None
    ):
        """Initialize logger configuration.

        Args:
            environment: Environment name (development, production, test)
            log_level: Default log level
            log_file: Optional path of a rotating application log (production only)
        """
        self.environment = environment
        self.log_level = getattr(logging, log_level.upper(), logging.INFO)
        self.log_file = Path(log_file) if log_file else None

        self._configure_root_logger()
        self._configure_component_loggers()

    def _configure_root_logger(self) -> None:
        root_logger = logging.getLogger()
        root_logger.setLevel(self.log_level)
        root_logger.handlers.clear()

        if self.environment == 'production':
            self._add_production_handlers(root_logger)
        elif self.environment == 'test':
            self._add_test_handlers(root_logger)
        else:
            self._add_development_handlers(root_logger)

    def _add_production_handlers(self, logger: logging.Logger) -> None:
        """Add JSON handlers for production.

        Args:
            logger: Logger to configure
        """
        json_formatter = TrustReportFormatter(
            fmt='%(timestamp)s %(level)s %(logger)s %(message)s'
        )

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(json_formatter)
        logger.addHandler(console_handler)

        if self.log_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                filename=self.log_file,
                maxBytes=50 * 1024 * 1024,  # 50MB
                backupCount=10,
                encoding='utf-8'
            )
            file_handler.setLevel(logging.INFO)
            file_handler.setFormatter(json_formatter)
            logger.addHandler(file_handler)

    def _add_development_handlers(self, logger: logging.Logger) -> None:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(logging.Formatter(
            fmt='%(asctime)s | %(levelname)-8s | %(name)-28s | %(funcName)-20s:%(lineno)-3d | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        logger.addHandler(console_handler)

    def _add_test_handlers(self, logger: logging.Logger) -> None:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)  # Only warnings and errors during tests
        console_handler.setFormatter(logging.Formatter(
            fmt='TEST | %(levelname)s | %(name)s | %(message)s'
        ))
        logger.addHandler(console_handler)

    def _configure_component_loggers(self) -> None:
        for component, logger_name in self.COMPONENTS.items():
            logger = logging.getLogger(logger_name)
            logger.setLevel(self.log_level)
            logger.addFilter(ContextFilter({'component': component}))

    def get_logger(self, name: str) -> logging.Logger:
        return logging.getLogger(name)

    def get_component_logger(self, component: str) -> logging.Logger:
        """Get a component-specific logger.

        Args:
            component: Component name (api, database, llm, etc.)

        Returns:
            logging.Logger: Component logger

        Raises:
            ValueError: If component is not recognized
        """
        if component not in self.COMPONENTS:
            raise ValueError(f"Unknown component: {component}. Available: {list(self.COMPONENTS.keys())}")

        return logging.getLogger(self.COMPONENTS[component])


# Global logger configuration instance
_logger_config: Optional[LoggerConfig] = None


def setup_logging(
    environment: str = 'development',
    log_level: str = 'INFO',
    log_file: Optional[str] = None
) -> LoggerConfig:
    """Setup application logging.

    Args:
        environment: Environment name
        log_level: Log level
        log_file: Optional rotating log file path

    Returns:
        LoggerConfig: Configured logger instance
    """
    global _logger_config
    _logger_config = LoggerConfig(environment, log_level, log_file)
    return _logger_config


def get_logger(name: str = __name__) -> logging.Logger:
    """Get a logger instance, configuring defaults on first use."""
    if _logger_config is None:
        setup_logging()

    return _logger_config.get_logger(name)


def get_component_logger(component: str) -> logging.Logger:
    if _logger_config is None:
        setup_logging()

    return _logger_config.get_component_logger(component)


def get_api_logger() -> logging.Logger:
    """Get API component logger."""
    return get_component_logger('api')


def get_llm_logger() -> logging.Logger:
    """Get LLM component logger."""
    return get_component_logger('llm')


def get_cache_logger() -> logging.Logger:
    """Get cache component logger."""
    return get_component_logger('cache')


def log_api_request(method: str, path: str, request_id: Optional[str] = None, logger: Optional[logging.Logger] = None) -> None:
    """Log an incoming API request.

    Args:
        method: HTTP method
        path: Request path
        request_id: Correlation id assigned by the request id middleware
        logger: Logger instance
    """
    if logger is None:
        logger = get_api_logger()

    logger.info(f"{method} {path}", extra={
        'http_method': method,
        'request_path': path,
        'request_id': request_id,
        'event_type': 'api_request'
    })


def log_api_response(method: str, path: str, status_code: int, duration_ms: float, logger: Optional[logging.Logger] = None) -> None:
    """Log an API response; 4xx/5xx are logged at WARNING.

    Args:
        method: HTTP method
        path: Request path
        status_code: HTTP status code
        duration_ms: Request duration in milliseconds
        logger: Logger instance
    """
    if logger is None:
        logger = get_api_logger()

    level = logging.WARNING if status_code >= 400 else logging.INFO

    logger.log(level, f"{method} {path} - {status_code}", extra={
        'http_method': method,
        'request_path': path,
        'status_code': status_code,
        'duration_ms': duration_ms,
        'event_type': 'api_response'
    })


def log_llm_request(model: str, prompt_type: str, tokens: int, duration_ms: float, logger: Optional[logging.Logger] = None) -> None:
    """Log a completed chat-completion call.

    Args:
        model: Model name
        prompt_type: Prompt subtype (reliability_analysis, ocean, ...)
        tokens: Total tokens reported by the provider
        duration_ms: Round-trip duration
        logger: Logger instance
    """
    if logger is None:
        logger = get_llm_logger()

    logger.info(f"LLM request to {model}", extra={
        'model': model,
        'prompt_type': prompt_type,
        'token_count': tokens,
        'duration_ms': duration_ms,
        'event_type': 'llm_request'
    })


class PerformanceLogger:
    """Context manager for performance logging."""

    def __init__(
        self,
        operation: str,
        logger: Optional[logging.Logger] = None,
        extra: Optional[Dict[str, Any]] = None,
        warn_after_ms: float = 5000
    ):
        self.operation = operation
        self.logger = logger or get_logger()
        self.extra = extra or {}
        self.warn_after_ms = warn_after_ms
        self.start_time: Optional[datetime] = None

    def __enter__(self) -> 'PerformanceLogger':
        self.start_time = datetime.now(timezone.utc)
        self.logger.debug(f"Starting {self.operation}", extra={
            'operation': self.operation,
            'event_type': 'performance_start',
            **self.extra
        })
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.start_time:
            duration_ms = (datetime.now(timezone.utc) - self.start_time).total_seconds() * 1000
            level = logging.WARNING if duration_ms > self.warn_after_ms else logging.INFO

            self.logger.log(level, f"Completed {self.operation}", extra={
                'operation': self.operation,
                'duration_ms': duration_ms,
                'event_type': 'performance_end',
                'success': exc_type is None,
                **self.extra
            })
