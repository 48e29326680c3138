import socket
from typing import Optional
from config import NETWORK
from logging_config import get_logger

logger = get_logger(__name__)


def is_connected(host: Optional[str] = None, port: Optional[int] = None,
                 timeout: Optional[float] = None) -> bool:
    """
    Best effort check that the internet is reachable.

    Opens (and immediately closes) a TCP connection to a well-known host.
    Any failure counts as offline.
    """
    host = host or NETWORK["check_host"]
    port = port or NETWORK["check_port"]
    timeout = timeout if timeout is not None else NETWORK["check_timeout"]

    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError as e:
        logger.debug(f"Connectivity check to {host}:{port} failed: {e}")
        return False
