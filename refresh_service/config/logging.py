"""Utilities related to logging."""

import logging
import logging.config
from importlib import resources
from typing import Optional, TextIO

import yaml
from pythonjsonlogger import jsonlogger

DEFAULT_LOGGING_CONFIG_PATH = "refresh_service.config:default_logging_config.yml"
LOG_FORMAT_FILE = "%(asctime)s %(levelname)s %(pathname)s:%(lineno)d %(message)s"


def load_resource(path: str, encoding: str = None) -> Optional[TextIO]:
    """Open a resource file located in a python package or the local filesystem.

    Args:
        path: The resource path in the form of `dir/file` or `package:dir/file`
    Returns:
        A file-like object representing the resource
    """
    components = path.rsplit(":", 1)
    try:
        if len(components) == 1:
            # Local filesystem resource
            return open(components[0], encoding=encoding)
        else:
            # Package resource
            package, resource = components
            return (resources.files(package) / resource).open(
                "r", encoding=encoding or "utf-8"
            )
    except IOError:
        pass


class LoggingConfigurator:
    """Utility class used to configure logging."""

    default_config_path = DEFAULT_LOGGING_CONFIG_PATH

    @classmethod
    def configure(
        cls,
        log_config_path: str = None,
        log_level: str = None,
        log_file: str = None,
    ):
        """Configure logger.

        :param log_config_path: str: (Default value = None) Optional path to
            a custom YAML logging config

        :param log_level: str: (Default value = None)

        :param log_file: str: (Default value = None) Optional file name to write
            JSON formatted logs to
        """
        cls._setup_log_config_file(log_config_path or cls.default_config_path)

        if log_file:
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setFormatter(jsonlogger.JsonFormatter(LOG_FORMAT_FILE))
            logging.root.handlers.append(file_handler)

        if log_level:
            logging.root.setLevel(log_level.upper())

    @classmethod
    def _setup_log_config_file(cls, log_config_path: str):
        log_config = cls._load_log_config(log_config_path)
        if not log_config:
            logging.basicConfig(level=logging.WARNING)
            logging.root.warning(f"Logging config file not found: {log_config_path}")
        else:
            logging.config.dictConfig(log_config)

    @classmethod
    def _load_log_config(cls, log_config_path: str) -> Optional[dict]:
        stream = load_resource(log_config_path, "utf-8")
        if not stream:
            return None
        with stream:
            return yaml.safe_load(stream)
