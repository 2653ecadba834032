import os
import urllib.request

import pytest

from lungecount import pose


@pytest.fixture
def no_download(monkeypatch):
    def fail(url, filename):
        raise AssertionError(f"unexpected download of {url}")

    monkeypatch.setattr(urllib.request, "urlretrieve", fail)


def test_cached_model_is_reused(tmp_path, no_download):
    cached = tmp_path / pose._POSE_MODEL_FILENAME
    cached.write_bytes(b"model")
    assert pose.ensure_pose_model(str(tmp_path)) == str(cached)


def test_model_downloaded_into_model_dir(tmp_path, monkeypatch):
    fetched = []

    def fake_retrieve(url, filename):
        fetched.append(url)
        with open(filename, "wb") as f:
            f.write(b"model")

    monkeypatch.setattr(urllib.request, "urlretrieve", fake_retrieve)
    model_dir = tmp_path / "models" / "nested"
    path = pose.ensure_pose_model(str(model_dir))
    assert path == os.path.join(str(model_dir), pose._POSE_MODEL_FILENAME)
    assert open(path, "rb").read() == b"model"
    assert fetched == [pose._POSE_MODEL_URL]
    assert os.listdir(model_dir) == [pose._POSE_MODEL_FILENAME]


def test_default_model_dir_from_env(tmp_path, monkeypatch, no_download):
    monkeypatch.setenv("LUNGE_MODEL_DIR", str(tmp_path))
    (tmp_path / pose._POSE_MODEL_FILENAME).write_bytes(b"model")
    assert pose.default_model_dir() == str(tmp_path)
    assert pose.ensure_pose_model() == str(tmp_path / pose._POSE_MODEL_FILENAME)


def test_default_model_dir_is_user_cache(tmp_path, monkeypatch):
    monkeypatch.delenv("LUNGE_MODEL_DIR", raising=False)
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path))
    assert pose.default_model_dir() == os.path.join(str(tmp_path), "lungecount")
    monkeypatch.delenv("XDG_CACHE_HOME")
    default = pose.default_model_dir()
    assert default == os.path.join(os.path.expanduser("~"), ".cache", "lungecount")
    assert "site-packages" not in default
