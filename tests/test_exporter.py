import pytest

from atlas.server.io.exporter import CoordinateTableWriter, CountryFileWriter
from atlas.shared.errors import CountryFileError


def test_accepts_bare_and_prefixed_names(tmp_path):
    writer = CountryFileWriter(tmp_path)
    assert writer.resolve_target("usa.toml") == (tmp_path / "usa.toml").resolve()
    assert writer.resolve_target("countries/usa.toml") == (tmp_path / "usa.toml").resolve()


@pytest.mark.parametrize("path", ["../usa.toml", "/etc/passwd", "usa.ts", "countries", "a/b.toml"])
def test_rejects_paths_outside_directory(tmp_path, path):
    with pytest.raises(CountryFileError):
        CountryFileWriter(tmp_path).resolve_target(path)


def test_write_replaces_existing_file(tmp_path):
    writer = CountryFileWriter(tmp_path)
    writer.write("usa.toml", 'name = "old"\n')
    target = writer.write("usa.toml", 'name = "new"\n')
    assert target.read_text(encoding="utf-8") == 'name = "new"\n'
    assert not (tmp_path / "usa.toml.tmp").exists()


def test_coordinate_table_adds_and_replaces(tmp_path):
    path = tmp_path / "map" / "coordinates.toml"
    writer = CoordinateTableWriter(path)

    assert writer.set("usa", -98.0, 39.0) is False
    assert writer.set("fra", 2.0, 46.0) is False
    assert writer.set("usa", -99.5, 40.0) is True

    assert writer.read() == {"fra": [2.0, 46.0], "usa": [-99.5, 40.0]}
    assert path.read_text(encoding="utf-8").startswith("# Hand-maintained")
    assert not path.with_name("coordinates.toml.tmp").exists()


def test_unreadable_coordinate_table_is_reported(tmp_path):
    path = tmp_path / "coordinates.toml"
    path.write_text("[coordinates\n", encoding="utf-8")
    with pytest.raises(CountryFileError):
        CoordinateTableWriter(path).set("usa", 0, 0)
