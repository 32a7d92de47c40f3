"""WSGI application serving the Tubely API and static files."""

from __future__ import annotations

import argparse
import html
import logging
import os
import sqlite3
import uuid
from typing import Callable, Iterable, Optional, Sequence
from urllib.parse import quote

from dotenv import load_dotenv
from werkzeug.exceptions import HTTPException, NotFound
from werkzeug.routing import Map, Rule
from werkzeug.security import safe_join
from werkzeug.serving import run_simple
from werkzeug.utils import redirect, send_file
from werkzeug.wrappers import Request, Response

from .config import Config, ConfigError
from .database import Client
from .responses import error_response, json_response, no_cache

logger = logging.getLogger(__name__)

_TEXT = "text/plain; charset=utf-8"


def _not_found() -> Response:
    return Response("404 page not found\n", status=404, content_type=_TEXT)


def _listing(directory: str) -> Response:
    entries = []
    with os.scandir(directory) as it:
        for entry in it:
            name = entry.name + ("/" if entry.is_dir() else "")
            entries.append(name)
    lines = [
        "<!doctype html>",
        '<meta name="viewport" content="width=device-width">',
        "<pre>",
    ]
    lines.extend(
        f'<a href="{html.escape(quote(name))}">{html.escape(name)}</a>'
        for name in sorted(entries)
    )
    lines.append("</pre>")
    return Response("\n".join(lines) + "\n", content_type="text/html; charset=utf-8")


class _FileServer:
    """Serve files below ``root`` for request paths under ``prefix``."""

    def __init__(self, root: str, prefix: str) -> None:
        self._root = root
        self._prefix = prefix

    def __call__(self, environ: dict, start_response: Callable) -> Iterable[bytes]:
        request = Request(environ)
        return self._serve(request)(environ, start_response)

    def _send(self, request: Request, path: str) -> Response:
        response = send_file(path, environ=request.environ, conditional=True)
        response.headers.pop("Cache-Control", None)
        return response

    def _serve(self, request: Request) -> Response:
        path = request.path
        rel = path[len(self._prefix):] or "/"
        if rel.endswith("/index.html"):
            return redirect(path[: -len("index.html")], code=301)

        inner = rel.strip("/")
        full = self._root if not inner else safe_join(self._root, inner)
        if full is None or not os.path.exists(full):
            return _not_found()

        if os.path.isdir(full):
            if not path.endswith("/"):
                return redirect(path + "/", code=301)
            index = os.path.join(full, "index.html")
            if os.path.isfile(index):
                return self._send(request, index)
            try:
                return _listing(full)
            except OSError:
                return Response("Error reading directory\n", status=500, content_type=_TEXT)

        if path.endswith("/"):
            return redirect(path.rstrip("/"), code=301)
        try:
            return self._send(request, full)
        except OSError:
            return Response("500 Internal Server Error\n", status=500, content_type=_TEXT)


class App:
    """The Tubely WSGI application."""

    def __init__(self, config: Config, db: Client) -> None:
        self.config = config
        self.db = db
        self._app_files = _FileServer(config.filepath_root, "/app")
        self._asset_files = no_cache(_FileServer(config.assets_root, "/assets"))
        self._url_map = Map(
            [
                Rule("/api/videos/<video_id>", methods=["GET"], endpoint="video_get"),
                Rule("/admin/reset", methods=["POST"], endpoint="reset"),
            ]
        )
        self._endpoints = {
            "video_get": self.handle_video_get,
            "reset": self.handle_reset,
        }

    def __call__(self, environ: dict, start_response: Callable) -> Iterable[bytes]:
        path = environ.get("PATH_INFO", "") or "/"
        if path.startswith("/app/"):
            return self._app_files(environ, start_response)
        if path.startswith("/assets/"):
            return self._asset_files(environ, start_response)
        request = Request(environ)
        return self._dispatch(request)(environ, start_response)

    def _dispatch(self, request: Request) -> Response:
        if request.path in ("/app", "/assets"):
            return redirect(request.path + "/", code=301)
        adapter = self._url_map.bind_to_environ(request.environ)
        try:
            endpoint, args = adapter.match()
        except NotFound:
            return _not_found()
        except HTTPException as exc:
            return exc.get_response(request.environ)
        return self._endpoints[endpoint](request, **args)

    def handle_reset(self, request: Request) -> Response:
        """Empty the database; only allowed on the dev platform."""
        if self.config.platform != "dev":
            return Response(
                "Reset is only allowed in dev environment.", status=403, content_type=_TEXT
            )
        try:
            self.db.reset()
        except sqlite3.Error as exc:
            return error_response(500, "Couldn't reset database", exc)
        return Response("Database reset to initial state", status=200, content_type=_TEXT)

    def handle_video_get(self, request: Request, video_id: str) -> Response:
        """Return the metadata of one video."""
        try:
            parsed = uuid.UUID(video_id)
        except ValueError as exc:
            return error_response(400, "Invalid video ID", exc)
        try:
            video = self.db.get_video(parsed)
        except sqlite3.Error as exc:
            return error_response(404, "Couldn't get video", exc)
        if video is None:
            return error_response(404, "Couldn't get video", None)
        return json_response(200, video)


def create_app(config: Config, db: Client) -> App:
    """Build the WSGI application."""
    return App(config, db)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Read configuration from the environment and serve until stopped."""
    parser = argparse.ArgumentParser(
        prog="tubely",
        description="Serve the Tubely API; settings come from the environment and .env.",
    )
    parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    load_dotenv(".env")
    try:
        config = Config.from_env()
    except ConfigError as exc:
        logger.error("%s", exc)
        return 1
    try:
        port = int(config.port)
    except ValueError:
        logger.error("Invalid PORT: %s", config.port)
        return 1

    try:
        db = Client(config.db_path)
    except sqlite3.Error as exc:
        logger.error("Couldn't connect to database: %s", exc)
        return 1

    with db:
        try:
            config.ensure_assets_dir()
        except OSError as exc:
            logger.error("Couldn't create assets directory: %s", exc)
            return 1
        app = create_app(config, db)
        logger.info("Serving on: http://localhost:%s/app/", config.port)
        try:
            run_simple("0.0.0.0", port, app, threaded=True)
        except OSError as exc:
            logger.error("%s", exc)
            return 1
    return 0