import logging
from typing import Optional, Union


DEFAULT_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'

# botocore logs every retry and credential lookup at INFO/DEBUG
NOISY_LOGGERS = ('botocore', 'boto3', 'urllib3')


def resolve_level(level: Union[int, str]) -> int:
	"""Turn a level name such as "debug" into its logging constant."""
	if isinstance(level, int):
		return level
	value = logging.getLevelName(str(level).upper())
	if not isinstance(value, int):
		raise ValueError(f"Unknown log level: {level}")
	return value


def setup_logging(level: Union[int, str] = logging.INFO, fmt: Optional[str] = None) -> None:
	"""Configure root logging once. Subsequent calls are no-ops.
	If fmt is not provided, a sensible default is used.
	"""
	if logging.getLogger().handlers:
		# Already configured; do nothing
		return
	logging.basicConfig(level=resolve_level(level), format=fmt or DEFAULT_FORMAT)
	for name in NOISY_LOGGERS:
		logging.getLogger(name).setLevel(logging.WARNING)


def set_log_level(level: Union[int, str]) -> None:
	"""Change the root level after logging has been configured."""
	setup_logging()
	logging.getLogger().setLevel(resolve_level(level))


def get_logger(name: Optional[str] = None) -> logging.Logger:
	"""Return a module/logger by name, after ensuring logging is configured."""
	setup_logging()
	return logging.getLogger(name) if name else logging.getLogger(__name__)

