"""
__main__.py — listener startup: python -m planmystay

The port is bound here, before uvicorn runs the lifespan, so a taken port is
reported with a hint and exits with status 1. uvicorn only starts listening
after the lifespan startup (database check) has succeeded; readiness is
logged there, not here.
"""
import errno
import logging
import socket

import uvicorn

from planmystay.config import settings
from planmystay.main import app

logger = logging.getLogger("planmystay.server")


def bind_socket(host: str, port: int) -> socket.socket:
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
    except OSError as exc:
        sock.close()
        if exc.errno == errno.EADDRINUSE:
            logger.error("Port %d is already in use.", port)
            logger.error("Try: stop the other process OR PORT=%d python -m planmystay", port + 1)
        else:
            logger.error("Server error: %s", exc)
        raise SystemExit(1) from exc
    sock.set_inheritable(True)
    return sock


def main() -> None:
    sock = bind_socket(settings.host, settings.port)
    server = uvicorn.Server(uvicorn.Config(app, lifespan="on", proxy_headers=True))
    server.run(sockets=[sock])
    if not server.started:
        # Lifespan startup failed (e.g. database unreachable)
        logger.error("Startup failed, exiting")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
