import io
import os
import socket
import sys
from unittest import mock

import pytest
from aiohttp.test_utils import TestClient, TestServer

from sigourney import debug
from sigourney.audio.common import FRAME_LENGTH
from sigourney.cli import build_app, build_demo_patch, demo, main, open_browser
from sigourney.session import AUDIO_OUTPUT


def test_demo_patch_length_and_bounds():
    samples = debug.process(build_demo_patch(), 8)
    assert len(samples) == 8 * FRAME_LENGTH
    assert all(abs(s) <= 0.5 + 1e-9 for s in samples)


def test_demo_patch_makes_sound():
    samples = debug.process(build_demo_patch(), 8)
    assert max(abs(s) for s in samples) > 0


@mock.patch("time.sleep")
def test_demo_writes_whole_frames(_sleep, monkeypatch):
    raw = io.BytesIO()
    monkeypatch.setattr(sys, "stdout", io.TextIOWrapper(raw))
    monkeypatch.setattr(sys, "stdin", io.StringIO("\n"))
    assert demo() is None
    assert len(raw.getvalue()) % (FRAME_LENGTH * 2) == 0


@pytest.mark.parametrize(
    "platform, prefix",
    [
        ("darwin", ["open"]),
        ("win32", ["cmd", "/c", "start"]),
        ("linux", ["xdg-open"]),
    ],
)
def test_open_browser_command(monkeypatch, platform, prefix):
    monkeypatch.setattr(sys, "platform", platform)
    with mock.patch("subprocess.Popen") as popen:
        assert open_browser("http://localhost:8080/") is True
    assert popen.call_args[0][0] == [*prefix, "http://localhost:8080/"]


def test_open_browser_failure():
    with mock.patch("subprocess.Popen", side_effect=FileNotFoundError("missing")):
        assert open_browser("http://localhost:8080/") is False


@pytest.mark.asyncio
async def test_static_files(tmp_path):
    (tmp_path / "index.html").write_text("<h1>patch</h1>")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "index.html").write_text("inner")
    (tmp_path / "app.js").write_text("var x;")
    async with TestClient(TestServer(build_app(tmp_path))) as client:
        resp = await client.get("/")
        assert resp.status == 200
        assert await resp.text() == "<h1>patch</h1>"
        resp = await client.get("/app.js")
        assert await resp.text() == "var x;"
        resp = await client.get("/sub/")
        assert await resp.text() == "inner"
        resp = await client.get("/missing.txt")
        assert resp.status == 404


@pytest.mark.asyncio
async def test_socket_session(tmp_path):
    app = build_app(tmp_path)
    with open(os.devnull, "wb") as sink:
        app[AUDIO_OUTPUT] = sink
        async with TestClient(TestServer(app)) as client:
            async with client.ws_connect("/socket") as ws:
                hello = await ws.receive_json(timeout=10)
                assert hello["Action"] == "hello"
                assert hello["KindInputs"]["mul"] == ["a", "b"]
                await ws.send_json({"Action": "bogus"})
                reply = await ws.receive_json(timeout=10)
                assert reply["Action"] == "message"
                assert reply["Message"] == "unrecognized Action: bogus"


def test_main_serves_until_enter(monkeypatch, capsys, tmp_path):
    monkeypatch.setattr(sys, "stdin", io.StringIO("\n"))
    code = main(["--listen", "localhost:0", "--no-browser", "--static", str(tmp_path)])
    err = capsys.readouterr().err
    assert code == 0
    assert "Open your web browser to http://localhost:0/" in err
    assert "Press enter to quit..." in err


def test_main_skips_notice_when_browser_opens(monkeypatch, capsys, tmp_path):
    monkeypatch.setattr(sys, "stdin", io.StringIO("\n"))
    with mock.patch("subprocess.Popen") as popen:
        code = main(["--listen", "localhost:0", "--static", str(tmp_path)])
    err = capsys.readouterr().err
    assert code == 0
    assert popen.call_args[0][0][-1] == "http://localhost:0/"
    assert "Open your web browser" not in err


@pytest.mark.parametrize("address", ["localhost", "localhost:port", "localhost:70000"])
def test_main_rejects_bad_address(monkeypatch, address):
    monkeypatch.setattr(sys, "stdin", io.StringIO("\n"))
    assert main(["--listen", address, "--no-browser"]) == 1


def test_main_fails_when_port_taken(monkeypatch, tmp_path):
    monkeypatch.setattr(sys, "stdin", io.StringIO("\n"))
    with socket.socket() as busy:
        busy.bind(("127.0.0.1", 0))
        busy.listen()
        port = busy.getsockname()[1]
        code = main(
            ["--listen", f"127.0.0.1:{port}", "--no-browser", "--static", str(tmp_path)]
        )
    assert code == 1