import socket
from typing import Optional


def mask_key(key: Optional[str]) -> str:
    """Masks an API key for logging, keeping only its edges."""
    if not key:
        return "<none>"
    if len(key) <= 8:
        return "****"
    return f"{key[:4]}...{key[-4:]}"


def get_local_ip() -> str:
    """Best guess at the LAN address, used when the server binds 0.0.0.0."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        # No packets are sent for a UDP connect.
        sock.connect(("8.8.8.8", 80))
        return sock.getsockname()[0]
    except OSError:
        return "127.0.0.1"
    finally:
        sock.close()
