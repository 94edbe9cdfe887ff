import json

from atlas.shared.config import DEFAULT_API_URL, AtlasConfig


def test_defaults(project):
    config = AtlasConfig(project)
    assert config.active_mods == ["base"]
    assert config.api_base_url == DEFAULT_API_URL
    assert config.get_data_dirs() == [project / "modules" / "base" / "data"]
    assert config.selection_slot_path == project / "user_data" / "selection.json"


def test_mods_manifest_sets_load_order(project):
    (project / "modules" / "extra" / "data").mkdir(parents=True)
    (project / "mods.json").write_text(json.dumps({"active_mods": ["base", "extra", "missing"]}), encoding="utf-8")
    config = AtlasConfig(project)
    assert [p.parent.name for p in config.get_data_dirs()] == ["base", "extra"]


def test_settings_file_and_environment(project, monkeypatch):
    (project / "atlas.json").write_text(json.dumps({"host": "0.0.0.0", "port": 8080}), encoding="utf-8")
    config = AtlasConfig(project)
    assert (config.host, config.port) == ("0.0.0.0", 8080)
    assert config.api_base_url == "http://0.0.0.0:8080"

    monkeypatch.setenv("ATLAS_API_URL", "http://atlas.example:9000")
    assert AtlasConfig(project).api_base_url == "http://atlas.example:9000"
