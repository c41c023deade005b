import os

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
REDIS_SOCKET_TIMEOUT = float(os.getenv("REDIS_SOCKET_TIMEOUT", "5.0"))
# Deadline applied to every repository call; unset means no deadline.
_command_timeout = os.getenv("REDIS_COMMAND_TIMEOUT", "")
REDIS_COMMAND_TIMEOUT = float(_command_timeout) if _command_timeout else None
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
