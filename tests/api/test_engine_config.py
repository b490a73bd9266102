import json

import pytest

from rainbowstego import ConfigurationError, EngineConfig, Rainbow


def test_defaults_round_trip():
    config = EngineConfig()
    assert config.to_dict() == {"verify_crc": True}
    assert EngineConfig.from_mapping(config.to_dict()) == config


def test_from_mapping_validates_values():
    config = EngineConfig.from_mapping(
        {"techniques": ["json_metadata"], "weights": {"json_metadata": 2}, "max_chunk_bytes": 64}
    )
    assert config.techniques == ("json_metadata",)
    assert config.weights == {"json_metadata": 2.0}
    for bad in (
        {"techniques": "json_metadata"},
        {"techniques": []},
        {"weights": {"json_metadata": 0}},
        {"max_chunk_bytes": -1},
        {"max_chunk_bytes": True},
        {"verify_crc": "yes"},
        {"host": "  "},
        {"colour": "blue"},
    ):
        with pytest.raises(ConfigurationError):
            EngineConfig.from_mapping(bad)


def test_from_env():
    config = EngineConfig.from_env(
        {
            "RAINBOWSTEGO_TECHNIQUES": "svg_path, wav_audio",
            "RAINBOWSTEGO_MAX_CHUNK": "256",
            "RAINBOWSTEGO_VERIFY_CRC": "off",
            "RAINBOWSTEGO_HOST": "cdn.example.test",
        }
    )
    assert config.techniques == ("svg_path", "wav_audio")
    assert config.max_chunk_bytes == 256
    assert config.verify_crc is False
    assert config.host == "cdn.example.test"
    with pytest.raises(ConfigurationError):
        EngineConfig.from_env({"RAINBOWSTEGO_MAX_CHUNK": "lots"})
    with pytest.raises(ConfigurationError):
        EngineConfig.from_env({"RAINBOWSTEGO_VERIFY_CRC": "maybe"})


def test_from_file(tmp_path):
    path = tmp_path / "engine.json"
    path.write_text(json.dumps({"techniques": ["xml_config"], "verify_crc": False}), encoding="utf-8")
    assert EngineConfig.from_file(str(path)).techniques == ("xml_config",)
    path.write_text("{broken", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        EngineConfig.from_file(str(path))
    with pytest.raises(ConfigurationError):
        EngineConfig.from_file(str(tmp_path / "missing.json"))


def test_unknown_configured_technique_is_rejected():
    with pytest.raises(ConfigurationError):
        Rainbow(config=EngineConfig(techniques=("teleport",)))


def test_host_is_used_for_requests():
    engine = Rainbow(config=EngineConfig(host="cdn.example.test"))
    packet = engine.encode_write(b"abc", is_client=True).packets[0]
    assert b"\r\nHost: cdn.example.test\r\n" in packet.data
