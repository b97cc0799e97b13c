# DEPENDENCIES
import sys
import time
import json
import logging
import traceback
from typing import Any
from typing import Dict
from pathlib import Path
from typing import Optional
from functools import wraps
from datetime import datetime
from logging.handlers import RotatingFileHandler



class StatuteAnalyzerLogger:
    """
    Structured logging for statute comparison and conflict detection
    Features:
    - Structured JSON log bodies
    - Separate files for errors and performance metrics
    - Size based log rotation
    """
    _loggers  : Dict[str, logging.Logger] = dict()
    _log_dir  : Optional[Path]            = None
    _app_name : str                       = "statute_analyzer"

    # Rotation limits
    MAX_BYTES                             = 10 * 1024 * 1024
    BACKUP_COUNT                          = 5


    @classmethod
    def setup(cls, log_dir: str = "logs", app_name: str = "statute_analyzer", level: str = "INFO"):
        """
        Setup logging system

        Arguments:
        ----------
            log_dir  { str } : Directory for log files

            app_name { str } : Application name used for logger and file names

            level    { str } : Minimum level for the main logger
        """
        cls._log_dir  = Path(log_dir)
        cls._log_dir.mkdir(parents = True, exist_ok = True)
        cls._app_name = app_name

        main_level    = getattr(logging, str(level).upper(), logging.INFO)

        cls._create_logger(name     = app_name,
                           log_file = cls._log_dir / f"{app_name}.log",
                           level    = main_level,
                          )

        cls._create_logger(name     = f"{app_name}.error",
                           log_file = cls._log_dir / f"{app_name}_error.log",
                           level    = logging.ERROR,
                          )

        cls._create_logger(name     = f"{app_name}.performance",
                           log_file = cls._log_dir / f"{app_name}_performance.log",
                           level    = logging.INFO,
                          )


    @classmethod
    def _create_logger(cls, name: str, log_file: Path, level: int) -> logging.Logger:
        """
        Create and configure a logger with a rotating file handler and a console handler for warnings
        """
        logger             = logging.getLogger(name)
        logger.setLevel(level)
        logger.propagate   = False

        logger.handlers.clear()

        file_handler       = RotatingFileHandler(log_file, maxBytes = cls.MAX_BYTES, backupCount = cls.BACKUP_COUNT, encoding = "utf-8")
        file_handler.setLevel(level)

        console_handler    = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)

        formatter          = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s', datefmt = '%Y-%m-%d %H:%M:%S')
        file_handler.setFormatter(formatter)
        console_handler.setFormatter(formatter)

        logger.addHandler(file_handler)
        logger.addHandler(console_handler)

        cls._loggers[name] = logger

        return logger


    @classmethod
    def get_logger(cls, name: Optional[str] = None) -> logging.Logger:
        """
        Get logger by name (lazily initialises the logging system)
        """
        name = name or cls._app_name

        if name not in cls._loggers:
            cls.setup(log_dir  = str(cls._log_dir or "logs"),
                      app_name = cls._app_name,
                     )

        return cls._loggers.get(name, logging.getLogger(name))


    @classmethod
    def log_structured(cls, level: int, message: str, **kwargs):
        """
        Log structured data as JSON

        Arguments:
        ----------
            level      { int } : Log level

            message    { str } : Log message

            **kwargs           : Additional structured data
        """
        logger   = cls.get_logger()

        log_data = {"timestamp" : datetime.now().isoformat(),
                    "message"   : message,
                    **kwargs
                   }

        logger.log(level, json.dumps(log_data, default = str, ensure_ascii = False))


    @classmethod
    def log_error(cls, error: Exception, context: Optional[Dict[str, Any]] = None):
        """
        Log error with traceback and context

        Arguments:
        ----------
            error      { Exception } : Exception object

            context      { dict }    : Additional context dictionary
        """
        error_logger = cls._loggers.get(f"{cls._app_name}.error") or cls.get_logger()

        error_data   = {"timestamp"     : datetime.now().isoformat(),
                        "error_type"    : type(error).__name__,
                        "error_message" : str(error),
                        "error_context" : getattr(error, "context", None),
                        "traceback"     : traceback.format_exc(),
                        "context"       : context or {},
                       }

        error_logger.error(json.dumps(error_data, indent = 2, default = str, ensure_ascii = False))


    @classmethod
    def log_performance(cls, operation: str, duration: float, **metrics):
        """
        Log performance metrics

        Arguments:
        ----------
            operation  { str }  : Operation name

            duration  { float } : Duration in seconds

            **metrics           : Additional metrics
        """
        perf_logger = cls._loggers.get(f"{cls._app_name}.performance") or cls.get_logger()

        perf_data   = {"timestamp"        : datetime.now().isoformat(),
                       "operation"        : operation,
                       "duration_seconds" : round(duration, 3),
                       **metrics
                      }

        perf_logger.info(json.dumps(perf_data, default = str))


    @staticmethod
    def log_execution_time(operation_name: Optional[str] = None):
        """
        Decorator to log execution time of functions
        """
        def decorator(func):
            @wraps(func)
            def wrapper(*args, **kwargs):
                op_name    = operation_name or func.__name__
                start_time = time.time()

                try:
                    result   = func(*args, **kwargs)

                    StatuteAnalyzerLogger.log_performance(operation = op_name,
                                                          duration  = time.time() - start_time,
                                                          status    = "success",
                                                         )

                    return result

                except Exception as e:
                    StatuteAnalyzerLogger.log_performance(operation = op_name,
                                                          duration  = time.time() - start_time,
                                                          status    = "error",
                                                          error     = str(e),
                                                         )

                    StatuteAnalyzerLogger.log_error(e, context = {"operation" : op_name})
                    raise

            return wrapper

        return decorator



# Convenience functions
def get_logger(name: Optional[str] = None) -> logging.Logger:
    return StatuteAnalyzerLogger.get_logger(name)


def log_info(message: str, **kwargs):
    StatuteAnalyzerLogger.log_structured(logging.INFO, message, **kwargs)


def log_warning(message: str, **kwargs):
    StatuteAnalyzerLogger.log_structured(logging.WARNING, message, **kwargs)


def log_error(error: Exception, context: Optional[Dict[str, Any]] = None):
    StatuteAnalyzerLogger.log_error(error, context)


def log_debug(message: str, **kwargs):
    StatuteAnalyzerLogger.log_structured(logging.DEBUG, message, **kwargs)
