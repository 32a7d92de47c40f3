# tubely

A small WSGI server for a video hosting site. It keeps users, refresh
tokens and video metadata in SQLite, serves a static front end and an
assets directory, and exposes one video at a time as JSON. The
`tubely.media` module holds helpers that sort MP4 files by aspect ratio
and run them through `ffmpeg` for fast start.

## Installation

```
pip install .
```

The helpers in `tubely.media` need `ffprobe` and `ffmpeg` on your `PATH`.
The server does not need them.

## Configuration

Set the settings as environment variables, or put them in a `.env` file
in the working directory. Each one must be set and non-empty, or the
server logs the missing name and exits with status 1:

| Variable        | Meaning                                                  |
|-----------------|----------------------------------------------------------|
| `DB_PATH`       | Path to the SQLite database file                         |
| `JWT_SECRET`    | Required, but the server does not use it                 |
| `PLATFORM`      | `dev` allows `POST /admin/reset`                         |
| `FILEPATH_ROOT` | Directory served under `/app/`                           |
| `ASSETS_ROOT`   | Directory served under `/assets/`. It is created if missing |
| `S3_BUCKET`     | Bucket name used by `Config.object_url`                  |
| `S3_REGION`     | Region used by `Config.object_url`                       |
| `S3_CF_DISTRO`  | Required, and kept in `Config.s3_cf_distribution`        |
| `PORT`          | Port to listen on. It must be an integer                 |

Example `.env`:

```
DB_PATH=tubely.db
JWT_SECRET=secret
PLATFORM=dev
FILEPATH_ROOT=./app
ASSETS_ROOT=./assets
S3_BUCKET=tubely-videos
S3_REGION=us-east-1
S3_CF_DISTRO=https://cdn.example.com
PORT=8091
```

## Running

```
tubely
```

The server listens on all interfaces at `PORT` and logs the address of
the app, for example `http://localhost:8091/app/`.

## Endpoints

- `GET /app/...`: static files from `FILEPATH_ROOT`. A directory is
  served through its `index.html` if it has one. Otherwise the server
  returns a listing of the directory.
- `GET /assets/...`: files from `ASSETS_ROOT`, sent with
  `Cache-Control: no-store`.
- `GET /api/videos/{videoID}`: the metadata of one video as JSON. An
  invalid ID gives 400 and an unknown one gives 404.
- `POST /admin/reset`: deletes every row in the database. It is allowed
  only when `PLATFORM=dev`, and returns 403 otherwise.

Errors from the API come back as JSON in the form `{"error": "message"}`.
Unknown paths return `404 page not found`.

## What the server does not do

The HTTP API has only the two API routes above. It has no sign-up, login,
token refresh or revoke endpoints. It does not check access tokens. It
has no endpoints to create, list or delete videos, and none to upload
thumbnails or video files. Nothing is uploaded to object storage.
`tubely.database.Client` can store users, refresh tokens and videos, but
only the calls listed here are reachable over HTTP.

## Using the pieces from Python

```python
from tubely.config import Config
from tubely.database import Client
from tubely.app import create_app

config = Config.from_env()
with Client(config.db_path) as db:
    app = create_app(config, db)  # a WSGI application
```

### Modules

- `tubely.database`: the `Client` class and the `User`, `Video` and
  `RefreshToken` dataclasses. Opening a `Client` creates the tables. Its
  methods cover the following tables:
  - users: `create_user`, `get_user`, `get_user_by_email`,
    `get_user_by_refresh_token`, `get_users` and `delete_user`.
  - refresh tokens: `create_refresh_token`, `get_refresh_token`,
    `revoke_refresh_token` and `delete_refresh_token`.
  - videos: `create_video`, `get_video`, `get_videos` (newest first),
    `update_video` and `delete_video`.

  The `reset` method clears every table. Lookups return `None` when
  nothing matches.
- `tubely.config`: `Config` has the following members:
  - `from_env`, which raises `ConfigError`.
  - `ensure_assets_dir`.
  - `object_url`, `asset_disk_path` and `asset_url`.

  The module also has `media_type_to_ext`, which maps `image/png` to
  `.png` and anything without exactly one `/` to `.bin`. It also has
  `get_asset_path`, which returns a random URL-safe file name with that
  extension.
- `tubely.responses`: `json_response`, `error_response` and the
  `no_cache` WSGI wrapper.
- `tubely.media`: the following helpers. The helpers that run `ffprobe`
  or `ffmpeg` raise `MediaError` when the tool fails.
  - `get_video_aspect_ratio(path)` returns `"16:9"`, `"9:16"` or
    `"other"`.
  - `aspect_ratio_from_dimensions(width, height)` classifies a width and
    height in the same way.
  - `aspect_ratio_directory(ratio)` maps a ratio to `landscape`,
    `portrait` or `other`.
  - `process_video_for_fast_start(path)` returns the path of the
    processed copy.
- `tubely.app`: the following entry points.
  - `App` is the WSGI application.
  - `create_app(config, db)` builds an `App`.
  - `main()` is what the `tubely` command runs.