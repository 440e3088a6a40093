from pathlib import Path

import pytest

from gltfkun.config import IoConfig, load_config, registry_for


def test_defaults_enable_bundled_extensions():
    cfg = IoConfig()
    assert cfg.extensions == ["OMI_physics_shape", "OMI_physics_body"]
    assert cfg.glb is False and cfg.embed_images is True


def test_yaml_config(tmp_path: Path):
    path = tmp_path / "io.yaml"
    path.write_text(
        "extensions: [OMI_physics_shape]\n"
        "glb: true\n"
        "generator: pipeline\n"
        "unknown_key: 1\n",
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert cfg.extensions == ["OMI_physics_shape"]
    assert cfg.glb is True
    assert cfg.generator == "pipeline"
    assert registry_for(cfg).names() == ["OMI_physics_shape"]


def test_json_config(tmp_path: Path):
    path = tmp_path / "io.json"
    path.write_text('{"embed_images": false}', encoding="utf-8")
    assert load_config(path).embed_images is False


def test_empty_yaml_gives_defaults(tmp_path: Path):
    path = tmp_path / "empty.yml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == IoConfig()


def test_invalid_config_rejected(tmp_path: Path):
    path = tmp_path / "bad.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)
    path.write_text("extensions: OMI_physics_body\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_unknown_extension_name_is_ignored():
    registry = registry_for(IoConfig(extensions=["VENDOR_x", "OMI_physics_body"]))
    assert registry.names() == ["OMI_physics_body"]
