"""
EdConnect server launcher.

Refuses to start when the port is already taken, then runs the FastAPI app
under uvicorn.
"""

import os
import socket
import sys

import uvicorn


def port_in_use(host: str, port: int) -> bool:
    try:
        with socket.create_connection((host, port), timeout=0.2):
            return True
    except OSError:
        return False


def main():
    host = os.getenv("EDCONNECT_HOST", "127.0.0.1")
    port = int(os.getenv("EDCONNECT_PORT", "8000"))

    if port_in_use(host, port):
        print(f"Port {port} is already in use; is another EdConnect instance running?")
        sys.exit(1)

    print(f"Starting EdConnect on http://{host}:{port}")
    uvicorn.run(
        "edconnect.api.main:app",
        host=host,
        port=port,
        log_level="info",
        reload=False,
        log_config=None,
    )


if __name__ == "__main__":
    main()
