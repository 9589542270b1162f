import socketserver
import threading

import pytest


class _Server(socketserver.ThreadingTCPServer):
    daemon_threads = True
    allow_reuse_address = True


@pytest.fixture
def tcp_server():
    """Start local TCP servers for a handler class and return their ports."""

    running = []

    def start(handler):
        server = _Server(("127.0.0.1", 0), handler)
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        running.append((server, thread))
        return server.server_address[1]

    yield start

    for server, thread in running:
        server.shutdown()
        server.server_close()
        thread.join()


@pytest.fixture
def cache_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("VIEWNET_CACHE_DIR", str(tmp_path))
    return tmp_path
