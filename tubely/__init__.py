"""A video hosting WSGI server with SQLite storage, static assets and ffmpeg helpers."""

__version__ = "0.1.0"