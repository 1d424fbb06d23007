from tetrisduel.settings import DEFAULT_NICKNAME, NICKNAME_MAX_LEN, Settings


def test_default_nickname():
    assert Settings().nickname == "Player"


def test_nickname_truncated():
    settings = Settings()
    settings.set_nickname("x" * 40)
    assert settings.nickname == "x" * (NICKNAME_MAX_LEN - 1)


def test_reset():
    settings = Settings()
    settings.set_nickname("Zed")
    settings.reset()
    assert settings.nickname == DEFAULT_NICKNAME


def test_save_load_round_trip(tmp_path):
    path = tmp_path / "config" / "settings.config"
    settings = Settings(path)
    settings.set_nickname("Alice")
    settings.save()
    assert path.read_text() == "nickname:Alice\n"
    loaded = Settings(path)
    loaded.load()
    assert loaded.nickname == "Alice"


def test_load_strips_windows_line_endings(tmp_path):
    path = tmp_path / "settings.config"
    path.write_bytes(b"nickname:Bob\r\n")
    settings = Settings(path)
    settings.load()
    assert settings.nickname == "Bob"


def test_value_keeps_later_colons(tmp_path):
    path = tmp_path / "settings.config"
    path.write_text("nickname:a:b\n")
    settings = Settings(path)
    settings.load()
    assert settings.nickname == "a:b"


def test_load_ignores_unknown_and_malformed_lines(tmp_path):
    path = tmp_path / "settings.config"
    path.write_text("garbage line\ncolour:red\n")
    settings = Settings(path)
    settings.set_nickname("Zed")
    settings.load()
    assert settings.nickname == DEFAULT_NICKNAME


def test_load_missing_file(tmp_path):
    settings = Settings(tmp_path / "nope.config")
    settings.set_nickname("Zed")
    settings.load()
    assert settings.nickname == DEFAULT_NICKNAME