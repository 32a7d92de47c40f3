import uuid
from unittest.mock import patch

import pytest
from werkzeug.test import Client as WSGIClient

from tubely.app import App, create_app, main
from tubely.config import Config
from tubely.database import Client


@pytest.fixture
def env(tmp_path):
    app_root = tmp_path / "app"
    app_root.mkdir()
    (app_root / "index.html").write_text("<h1>Tubely</h1>")
    static = app_root / "static"
    static.mkdir()
    (static / "style.css").write_text("body {}")
    assets = tmp_path / "assets"
    assets.mkdir()
    with Client(str(tmp_path / "tubely.db")) as db:
        yield tmp_path, db


def make_config(tmp_path, platform="dev"):
    return Config(
        db_path=str(tmp_path / "tubely.db"),
        jwt_secret="secret",
        platform=platform,
        filepath_root=str(tmp_path / "app"),
        assets_root=str(tmp_path / "assets"),
        s3_bucket="bucket",
        s3_region="us-east-1",
        s3_cf_distribution="https://cdn.example.com",
        port="8091",
    )


def make_client(tmp_path, db, platform="dev"):
    return WSGIClient(create_app(make_config(tmp_path, platform), db))


def test_create_app_keeps_config(env):
    tmp_path, db = env
    config = make_config(tmp_path)
    app = create_app(config, db)
    assert isinstance(app, App)
    assert app.config == config
    assert app.db is db


def test_reset_forbidden_outside_dev(env):
    tmp_path, db = env
    db.create_user("user@example.com", "password")
    response = make_client(tmp_path, db, platform="prod").post("/admin/reset")
    assert response.status_code == 403
    assert response.get_data(as_text=True) == "Reset is only allowed in dev environment."
    assert len(db.get_users()) == 1


def test_reset_in_dev_clears_database(env):
    tmp_path, db = env
    user = db.create_user("user@example.com", "password")
    db.create_video("Intro", "first video", user.id)
    response = make_client(tmp_path, db).post("/admin/reset")
    assert response.status_code == 200
    assert response.get_data(as_text=True) == "Database reset to initial state"
    assert db.get_users() == []
    assert db.get_videos(user.id) == []


def test_video_get_returns_metadata(env):
    tmp_path, db = env
    user = db.create_user("user@example.com", "password")
    video = db.create_video("Intro", "first video", user.id)
    response = make_client(tmp_path, db).get(f"/api/videos/{video.id}")
    assert response.status_code == 200
    assert response.headers["Content-Type"] == "application/json"
    body = response.get_json()
    assert body["id"] == str(video.id)
    assert body["title"] == "Intro"
    assert body["description"] == "first video"
    assert body["user_id"] == str(user.id)
    assert body["thumbnail_url"] is None
    assert body["video_url"] is None


def test_video_get_invalid_id(env):
    tmp_path, db = env
    response = make_client(tmp_path, db).get("/api/videos/not-a-uuid")
    assert response.status_code == 400
    assert response.get_json() == {"error": "Invalid video ID"}


def test_video_get_unknown_id(env):
    tmp_path, db = env
    response = make_client(tmp_path, db).get(f"/api/videos/{uuid.uuid4()}")
    assert response.status_code == 404
    assert response.get_json() == {"error": "Couldn't get video"}


def test_wrong_method_is_rejected(env):
    tmp_path, db = env
    response = make_client(tmp_path, db).get("/admin/reset")
    assert response.status_code == 405


def test_unknown_route(env):
    tmp_path, db = env
    response = make_client(tmp_path, db).get("/api/nothing")
    assert response.status_code == 404
    assert response.get_data(as_text=True) == "404 page not found\n"


def test_app_serves_index(env):
    tmp_path, db = env
    response = make_client(tmp_path, db).get("/app/")
    assert response.status_code == 200
    assert response.get_data(as_text=True) == "<h1>Tubely</h1>"


def test_app_redirects_to_trailing_slash(env):
    tmp_path, db = env
    client = make_client(tmp_path, db)
    response = client.get("/app")
    assert response.status_code == 301
    assert response.headers["Location"].endswith("/app/")
    response = client.get("/app/static")
    assert response.status_code == 301
    assert response.headers["Location"].endswith("/app/static/")


def test_app_lists_directory(env):
    tmp_path, db = env
    response = make_client(tmp_path, db).get("/app/static/")
    assert response.status_code == 200
    assert '<a href="style.css">style.css</a>' in response.get_data(as_text=True)


def test_app_missing_file(env):
    tmp_path, db = env
    response = make_client(tmp_path, db).get("/app/missing.js")
    assert response.status_code == 404


def test_assets_are_not_cached(env):
    tmp_path, db = env
    (tmp_path / "assets" / "thumb.png").write_bytes(b"\x89PNG data")
    response = make_client(tmp_path, db).get("/assets/thumb.png")
    assert response.status_code == 200
    assert response.get_data() == b"\x89PNG data"
    assert response.headers["Cache-Control"] == "no-store"


def test_main_fails_without_environment(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("DB_PATH", "JWT_SECRET", "PLATFORM", "FILEPATH_ROOT", "ASSETS_ROOT",
                 "S3_BUCKET", "S3_REGION", "S3_CF_DISTRO", "PORT"):
        monkeypatch.delenv(name, raising=False)
    with patch("tubely.app.run_simple") as run:
        assert main([]) == 1
    run.assert_not_called()


def test_main_serves_with_environment(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assets = tmp_path / "assets"
    values = {
        "DB_PATH": str(tmp_path / "tubely.db"),
        "JWT_SECRET": "secret",
        "PLATFORM": "dev",
        "FILEPATH_ROOT": str(tmp_path),
        "ASSETS_ROOT": str(assets),
        "S3_BUCKET": "bucket",
        "S3_REGION": "us-east-1",
        "S3_CF_DISTRO": "https://cdn.example.com",
        "PORT": "8091",
    }
    for name, value in values.items():
        monkeypatch.setenv(name, value)
    with patch("tubely.app.run_simple") as run:
        assert main([]) == 0
    assert assets.is_dir()
    args = run.call_args.args
    assert args[1] == 8091
    assert isinstance(args[2], App)