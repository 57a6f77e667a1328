import json

from qbc.core.settings import AppSettings, find_project_settings_path, load_project_settings


def _clear_env(monkeypatch):
    for name in ("QBC_RENDER_SIZE", "QBC_RASTER_SIZE", "QBC_THEME", "QBC_LATTICE", "QBC_LATTICE_PATH", "QBC_LOG_DIR"):
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_settings_file(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    s = AppSettings.load(tmp_path)
    assert s.render_size == 400
    assert s.raster_size == 1024
    assert s.default_lattice == "G1"
    assert s.lattice_path is None
    assert s.theme == "notebook"


def test_settings_file_is_found_upwards(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    (tmp_path / "qbc_settings.json").write_text(
        json.dumps(
            {
                "render": {"size_px": 800, "theme": "Gallery"},
                "raster": {"size_px": 99999},
                "lattice": {"key": "G2", "path": " lat.json "},
                "log": {"dir": "out/logs"},
            }
        ),
        encoding="utf-8",
    )
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)

    assert find_project_settings_path(nested) == (tmp_path / "qbc_settings.json").resolve()
    s = AppSettings.load(nested)
    assert s.render_size == 800
    assert s.raster_size == 8192
    assert s.theme == "gallery"
    assert s.default_lattice == "G2"
    assert s.lattice_path == "lat.json"
    assert s.log_dir == "out/logs"


def test_env_overrides_file(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    (tmp_path / "qbc_settings.json").write_text(json.dumps({"render": {"size_px": 800}}), encoding="utf-8")
    monkeypatch.setenv("QBC_RENDER_SIZE", "512")
    monkeypatch.setenv("QBC_THEME", "unknown")
    monkeypatch.setenv("QBC_LATTICE", "G1")

    s = AppSettings.load(tmp_path)
    assert s.render_size == 512
    assert s.theme == "notebook"

    s = AppSettings.load(tmp_path, prefer_env=False)
    assert s.render_size == 800


def test_invalid_settings_file_falls_back(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    (tmp_path / "qbc_settings.json").write_text("{broken", encoding="utf-8")
    assert load_project_settings(tmp_path) == {}
    monkeypatch.setenv("QBC_RASTER_SIZE", "lots")
    assert AppSettings.load(tmp_path).raster_size == 1024
