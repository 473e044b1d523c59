from __future__ import annotations

from pathlib import Path

import pocat
from pocat.config import CONFIG_FILENAME, PoConfig, load_config


def test_defaults_when_no_config_file(tmp_path: Path) -> None:
    assert load_config(tmp_path) == PoConfig()


def test_reads_pocat_table(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILENAME).write_text(
        '[pocat]\nwrap_width = 76\nnewline = "\\r\\n"\nunknown = true\n',
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.wrap_width == 76
    assert config.newline == "\r\n"
    assert config.encoding == "utf-8"


def test_reads_top_level_keys(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILENAME).write_text("sort_header = false\n", encoding="utf-8")
    assert load_config(tmp_path).sort_header is False


def test_invalid_toml_falls_back_to_defaults(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILENAME).write_text("wrap_width = = 3\n", encoding="utf-8")
    assert load_config(str(tmp_path)) == PoConfig()


def test_encoding_is_used_for_reading_and_writing(tmp_path: Path) -> None:
    config = PoConfig(encoding="latin-1")
    path = tmp_path / "fr.po"
    path.write_bytes('msgid "café"\nmsgstr "Kaffee"\n'.encode("latin-1"))

    po = pocat.parse_file(path, config)
    po.save(path, config)

    assert po.gettext("café") == "Kaffee"
    assert 'msgid "café"'.encode("latin-1") in path.read_bytes()
