"""Integration tests for graceful shutdown behavior."""

import signal
import socket
import time
from typing import TYPE_CHECKING

import pytest

from tests.utils.http import PING_REQUEST, exchange, parse_raw_response

pytestmark = pytest.mark.integration

if TYPE_CHECKING:
    from tests.conftest import ServerProcessInfo


@pytest.mark.parametrize("signum", [signal.SIGTERM, signal.SIGINT])
def test_signal_stops_server_cleanly(
    server_process: "ServerProcessInfo", signum: int
) -> None:
    process = server_process["process"]
    assert exchange(server_process["host"], server_process["port"], PING_REQUEST).body == (
        b"pong"
    )

    process.send_signal(signum)
    process.wait(timeout=5.0)
    assert process.returncode == 0

    contents = server_process["log_file"].read_text()
    assert '"event": "shutdown_requested"' in contents
    assert '"event": "server_stopped"' in contents


def test_in_flight_request_is_answered_during_shutdown(
    server_process: "ServerProcessInfo",
) -> None:
    host, port = server_process["host"], server_process["port"]
    process = server_process["process"]
    (server_process["directory"] / "big.bin").write_bytes(b"x" * 5000)

    with socket.create_connection((host, port), timeout=5.0) as sock:
        # Accepted and assigned to a worker before the signal arrives.
        time.sleep(0.2)
        process.send_signal(signal.SIGTERM)
        time.sleep(0.2)
        sock.sendall(b"GET /big.bin HTTP/1.1\r\n\r\n")
        raw = b""
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            raw += chunk

    response = parse_raw_response(raw)
    assert response.status_code == 200
    assert response.body == b"x" * 5000
    process.wait(timeout=5.0)
    assert process.returncode == 0


def test_listener_closes_after_shutdown(server_process: "ServerProcessInfo") -> None:
    process = server_process["process"]
    process.send_signal(signal.SIGTERM)
    process.wait(timeout=5.0)
    with pytest.raises(OSError):
        socket.create_connection(
            (server_process["host"], server_process["port"]), timeout=1.0
        )
