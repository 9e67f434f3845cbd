"""Unit tests for the .env updater."""

import pytest

from now_playing.utils.env_updater import update_env_file


def test_update_existing_key(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("# tokens\nSPOTIFY_ACCESS_TOKEN=old\nSPOTIFY_REFRESH_TOKEN=keep\n", encoding="utf-8")

    update_env_file(env_file, "SPOTIFY_ACCESS_TOKEN", "new")

    assert env_file.read_text(encoding="utf-8") == "# tokens\nSPOTIFY_ACCESS_TOKEN=new\nSPOTIFY_REFRESH_TOKEN=keep\n"


def test_update_exported_key(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("export SPOTIFY_ACCESS_TOKEN=old\n", encoding="utf-8")

    update_env_file(env_file, "SPOTIFY_ACCESS_TOKEN", "new")

    assert env_file.read_text(encoding="utf-8") == "SPOTIFY_ACCESS_TOKEN=new\n"


def test_append_missing_key(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("SPOTIFY_REFRESH_TOKEN=keep\n", encoding="utf-8")

    update_env_file(env_file, "SPOTIFY_ACCESS_TOKEN", "new")

    assert env_file.read_text(encoding="utf-8") == "SPOTIFY_REFRESH_TOKEN=keep\n\nSPOTIFY_ACCESS_TOKEN=new\n"


def test_commented_key_is_not_updated(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("# SPOTIFY_ACCESS_TOKEN=example\n", encoding="utf-8")

    update_env_file(env_file, "SPOTIFY_ACCESS_TOKEN", "new")

    lines = env_file.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "# SPOTIFY_ACCESS_TOKEN=example"
    assert lines[-1] == "SPOTIFY_ACCESS_TOKEN=new"


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        update_env_file(tmp_path / ".env", "SPOTIFY_ACCESS_TOKEN", "new")


@pytest.mark.parametrize("key", ["", "BAD=KEY", "BAD\nKEY"])
def test_invalid_key(tmp_path, key):
    env_file = tmp_path / ".env"
    env_file.write_text("", encoding="utf-8")

    with pytest.raises(ValueError):
        update_env_file(env_file, key, "value")


def test_multiline_value_rejected(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("", encoding="utf-8")

    with pytest.raises(ValueError):
        update_env_file(env_file, "SPOTIFY_ACCESS_TOKEN", "a\nb")
