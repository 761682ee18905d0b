"""Pytest configuration and a tiny local target for the HTTP tests."""
import threading
import urllib.parse
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

SECRET_USER = "admin"
SECRET_PASSWORD = "hunter2"


class LoginHandler(BaseHTTPRequestHandler):
    def do_POST(self):
        content_length = int(self.headers.get("Content-Length", 0))
        post_data = self.rfile.read(content_length).decode("utf-8")
        params = urllib.parse.parse_qs(post_data, keep_blank_values=True)

        with self.server.lock:
            self.server.received.append({
                "path": self.path,
                "body": post_data,
                "params": params,
                "cookie": self.headers.get("Cookie"),
                "user_agent": self.headers.get("User-Agent"),
                "content_type": self.headers.get("Content-Type"),
            })

        username = params.get("username", [""])[0]
        password = params.get("password", [""])[0]

        if username == SECRET_USER and password == SECRET_PASSWORD:
            body = b"welcome back"
            self.send_response(200)
        else:
            body = b"nope"
            self.send_response(404)
        if self.path == "/sticky":
            self.send_header("Set-Cookie", "sid=leaked; Path=/")
        self.send_header("Content-Type", "text/plain")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def login_server():
    server = ThreadingHTTPServer(("127.0.0.1", 0), LoginHandler)
    server.daemon_threads = True
    server.lock = threading.Lock()
    server.received = []
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    server.url = f"http://127.0.0.1:{server.server_address[1]}/login"
    yield server

    server.shutdown()
    server.server_close()


@pytest.fixture(autouse=True)
def isolated_log(tmp_path, monkeypatch):
    # keep test runs out of the real log file
    monkeypatch.setattr("utils.logger.LOG_PATH", str(tmp_path / "faast_log.txt"))
