"""Command-line entry: serve the patch editor or play the demo sound.

Audio is written to standard output as raw signed 16-bit mono PCM at
44100 Hz, so prompts and notices go to standard error.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import subprocess
import sys
import threading
import time
from collections.abc import Iterator
from pathlib import Path

from aiohttp import web

from .audio.common import Processor, Value
from .audio.engine import AudioError, Engine
from .audio.proc import Env, Mul, Sin, Sum
from .session import AUDIO_OUTPUT, websocket_handler

log = logging.getLogger(__name__)

DEFAULT_LISTEN = "localhost:8080"
DEFAULT_STATIC = "static"


def build_demo_patch() -> Processor:
    """Build the demo graph: a wobbling sine shaped by a pulsing envelope."""
    sin_mod = Sin()
    sin_mod.input("pitch", Value(-0.1))

    sin_mod_mul = Mul()
    sin_mod_mul.input("a", sin_mod)
    sin_mod_mul.input("b", Value(0.1))

    sine = Sin()
    sine.input("pitch", sin_mod_mul)

    env_mod = Sin()
    env_mod.input("pitch", Value(-1))

    env_mod_mul = Mul()
    env_mod_mul.input("a", env_mod)
    env_mod_mul.input("b", Value(0.02))

    env_mod_sum = Sum()
    env_mod_sum.input("a", env_mod_mul)
    env_mod_sum.input("b", Value(0.021))

    sin2 = Sin()
    sin2.input("pitch", Value(-0.6))

    env = Env()
    env.input("trig", sin2)
    env.input("att", Value(0.0001))
    env.input("dec", env_mod_sum)

    mul = Mul()
    mul.input("a", sine)
    mul.input("b", env)

    mul_mul = Mul()
    mul_mul.input("a", mul)
    mul_mul.input("b", Value(0.5))
    return mul_mul


def demo() -> None:
    """Play a plain sine for a second, then the demo patch until enter is pressed."""
    output = sys.stdout.buffer

    engine = Engine(output)
    engine.input("in", Sin())
    engine.start()
    time.sleep(1)
    engine.stop()

    engine = Engine(output)
    engine.input("in", build_demo_patch())
    engine.start()
    try:
        print("Press enter to stop...", file=sys.stderr, flush=True)
        sys.stdin.read(1)
    finally:
        engine.stop()


def open_browser(url: str) -> bool:
    """Try to open url in a web browser and report whether that worked."""
    if sys.platform == "darwin":
        args = ["open"]
    elif sys.platform == "win32":
        args = ["cmd", "/c", "start"]
    else:
        args = ["xdg-open"]
    try:
        subprocess.Popen(
            [*args, url], stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL
        )
    except OSError:
        return False
    return True


def _static_handler(static_dir: str | Path):
    root = Path(static_dir)

    async def handle(request: web.Request) -> web.StreamResponse:
        base = root.resolve()
        target = (base / request.match_info["path"]).resolve()
        if target != base and base not in target.parents:
            raise web.HTTPNotFound()
        if target.is_dir():
            target = target / "index.html"
        if not target.is_file():
            raise web.HTTPNotFound()
        return web.FileResponse(target)

    return handle


def build_app(static_dir: str | Path) -> web.Application:
    """Return the web application: files from static_dir and the /socket endpoint."""
    app = web.Application()
    app.router.add_get("/socket", websocket_handler)
    app.router.add_get("/{path:.*}", _static_handler(static_dir))
    return app


def _parse_address(address: str) -> tuple[str | None, int]:
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ValueError(f"address {address}: missing port in address")
    try:
        number = int(port)
    except ValueError:
        raise ValueError(f"address {address}: invalid port {port!r}") from None
    if not 0 <= number <= 65535:
        raise ValueError(f"address {address}: invalid port {port!r}")
    return host.strip("[]") or None, number


@contextlib.contextmanager
def _serving(app: web.Application, host: str | None, port: int) -> Iterator[None]:
    loop = asyncio.new_event_loop()
    runner = web.AppRunner(app)
    try:
        loop.run_until_complete(runner.setup())
        try:
            loop.run_until_complete(web.TCPSite(runner, host, port).start())
        except BaseException:
            loop.run_until_complete(runner.cleanup())
            raise
    except BaseException:
        loop.close()
        raise
    thread = threading.Thread(target=loop.run_forever, name="sigourney-http", daemon=True)
    thread.start()
    try:
        yield
    finally:
        loop.call_soon_threadsafe(loop.stop)
        thread.join()
        loop.run_until_complete(runner.cleanup())
        loop.close()


def main(argv: list[str] | None = None) -> int:
    """Run the editor server, or the demo with --demo."""
    parser = argparse.ArgumentParser(prog="sigourney", description="Modular synthesizer.")
    parser.add_argument("--listen", default=DEFAULT_LISTEN, help="listen address")
    parser.add_argument("--demo", action="store_true", help="play demo sound")
    parser.add_argument(
        "--browser",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="open web browser",
    )
    parser.add_argument("--static", default=DEFAULT_STATIC, help="directory of editor files")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    if args.demo:
        try:
            demo()
        except (AudioError, OSError) as exc:
            log.error("%s", exc)
        return 0

    try:
        host, port = _parse_address(args.listen)
    except ValueError as exc:
        log.error("%s", exc)
        return 1

    app = build_app(args.static)
    app[AUDIO_OUTPUT] = sys.stdout.buffer

    with contextlib.ExitStack() as stack:
        try:
            stack.enter_context(_serving(app, host, port))
        except OSError as exc:
            log.error("%s", exc)
            return 1
        url = f"http://{args.listen}/"
        if not args.browser or not open_browser(url):
            print(f"Open your web browser to {url}\n", file=sys.stderr)
        print("Press enter to quit...", file=sys.stderr, flush=True)
        sys.stdin.read(1)
    return 0