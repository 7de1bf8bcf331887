"""
Server starter for Monev PDB.
Detects the LAN address, picks a free port and serves the API with uvicorn.
"""

import sys
import socket
import logging

from config import PORTS_TO_TRY

logger = logging.getLogger(__name__)


def get_local_ip():
    """Get the local IP address of the machine."""
    s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        # No packet is sent; connect only selects the outgoing interface
        s.connect(("8.8.8.8", 80))
        return s.getsockname()[0]
    except OSError as e:
        logger.error(f"Error getting local IP: {e}")
        return "127.0.0.1"
    finally:
        s.close()


def check_port_available(host, port):
    """Check if a port is available."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.bind((host, port))
        return True
    except OSError:
        return False
    finally:
        sock.close()


def select_port(host, ports=PORTS_TO_TRY):
    for port in ports:
        if check_port_available(host, port):
            logger.info(f"Port {port} is available")
            return port
        logger.warning(f"Port {port} is already in use")
    return None


def start_server():
    # Importing app installs the rich log handler
    from app import asgi_app, prepare_database
    import uvicorn

    logger.info("=" * 60)
    logger.info("Monev PDB - Starting Server")
    logger.info("=" * 60)

    host_ip = get_local_ip()
    logger.info(f"Detected Local IP: {host_ip}")

    selected_port = select_port(host_ip)
    if not selected_port:
        logger.error("No available ports found. Please close other applications.")
        sys.exit(1)

    prepare_database()

    logger.info("=" * 60)
    logger.info("API will be accessible at:")
    logger.info(f"  Local:   http://localhost:{selected_port}/api")
    logger.info(f"  Network: http://{host_ip}:{selected_port}/api")
    logger.info("=" * 60)
    logger.info("Press Ctrl+C to stop the server")

    try:
        uvicorn.run(asgi_app, host=host_ip, port=selected_port, log_config=None)
    except KeyboardInterrupt:
        logger.info("Server stopped by user")


if __name__ == "__main__":
    start_server()
