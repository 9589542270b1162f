import socket
import socketserver

import pytest

from viewnet import probe
from viewnet.cancel import CancelToken
from viewnet.errors import ProbeError


class _SilentHandler(socketserver.BaseRequestHandler):
    def handle(self):
        self.request.recv(1)


class _SSHHandler(socketserver.BaseRequestHandler):
    def handle(self):
        self.request.sendall(b"SSH-2.0-OpenSSH_8.9p1 Ubuntu-3\r\n")
        self.request.recv(1)


def _free_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def test_probe_port_reads_banner(tcp_server):
    port = tcp_server(_SSHHandler)
    info = probe.probe_port("127.0.0.1", port, 1.0)
    assert info.is_open
    assert info.port == port
    assert info.protocol == "TCP"
    assert info.service == "Unknown"
    assert info.banner == "SSH-2.0-OpenSSH_8.9p1 Ubuntu-3"
    assert info.version == "2.0"
    assert info.response_time >= 0


def test_probe_port_silent_service(tcp_server):
    port = tcp_server(_SilentHandler)
    info = probe.probe_port("127.0.0.1", port, 0.2)
    assert info.is_open
    assert info.banner == ""
    assert info.version == ""


def test_probe_port_closed_raises_with_service():
    port = _free_port()
    with pytest.raises(ProbeError) as excinfo:
        probe.probe_port("127.0.0.1", port, 0.5)
    closed = excinfo.value.service
    assert closed.port == port
    assert closed.is_open is False
    assert closed.protocol == "TCP"


def test_probe_port_cancelled_token(tcp_server):
    port = tcp_server(_SilentHandler)
    token = CancelToken()
    token.cancel()
    with pytest.raises(ProbeError):
        probe.probe_port("127.0.0.1", port, 1.0, token)


def test_grab_banner_sends_http_request():
    client, server = socket.socketpair()
    with client, server:
        server.sendall(b"HTTP/1.1 200 OK\r\nServer: Apache/2.4.41 (Ubuntu)\r\n\r\n")
        banner = probe.grab_banner(client, 80, 0.5)
        request = server.recv(1024)
    assert request == b"GET / HTTP/1.1\r\nHost: \r\n\r\n"
    assert banner == "HTTP/1.1 200 OK Server: Apache/2.4.41 (Ubuntu)"
    assert probe.extract_version(banner, "HTTP") == "Apache 2.4.41"


def test_grab_banner_passive_port():
    client, server = socket.socketpair()
    with client, server:
        server.sendall(b"220 ready\r\n")
        banner = probe.grab_banner(client, 21, 0.5)
        server.setblocking(False)
        with pytest.raises(BlockingIOError):
            server.recv(1024)
    assert banner == "220 ready"


def test_clean_banner_strips_control_bytes():
    assert probe.clean_banner(b"  hello\x00\x01world \r\n") == "hello world"
    assert probe.clean_banner(b"line one\r\nline two") == "line one line two"


def test_clean_banner_truncates():
    banner = probe.clean_banner(b"A" * 150)
    assert banner == "A" * 100 + "..."
    assert probe.clean_banner(b"B" * 100) == "B" * 100


def test_extract_version_patterns():
    assert probe.extract_version("Server: nginx/1.18.0", "HTTP") == "nginx 1.18.0"
    assert probe.extract_version("220 (vsFTPd 3.0.3)", "FTP") == "vsFTPd 3.0.3"
    assert probe.extract_version("220 mail ESMTP Postfix 3.6.4", "SMTP") == "Postfix 3.6.4"
    # The SSH pattern carries a single group, so the generic number wins.
    assert probe.extract_version("SSH-2.0-OpenSSH_8.9p1", "SSH") == "2.0"
    assert probe.extract_version("MySQL 8.0.32-log", "MySQL") == "8.0.32"


def test_extract_version_empty():
    assert probe.extract_version("", "HTTP") == ""
    assert probe.extract_version("no numbers here", "Unknown") == ""


def test_service_name():
    assert probe.service_name(22) == "SSH"
    assert probe.service_name(8443) == "HTTPS-Alt"
    assert probe.service_name(12345) == "Unknown"
