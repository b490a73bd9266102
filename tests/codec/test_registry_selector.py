import random
from collections import Counter

import pytest

from rainbowstego.codec import JsonMetadataCodec, Role, XmlConfigCodec
from rainbowstego.exceptions import ConfigurationError, UnknownTechnique, UnsupportedMimeType
from rainbowstego.registry import CodecRegistry, default_registry, normalize_mime
from rainbowstego.selector import MimeSelector


def test_default_registry_is_cached():
    assert default_registry() is default_registry()
    assert len(default_registry()) == 13


def test_lookup_by_technique():
    registry = default_registry()
    assert registry.by_technique("css_grid").mime_type == "text/css"
    with pytest.raises(UnknownTechnique):
        registry.by_technique("morse_code")


def test_client_role_only_sees_dual_role_codecs():
    techniques = [codec.technique for codec in default_registry().compatible_codecs(Role.CLIENT)]
    assert techniques == ["json_metadata", "xml_config", "svg_path", "wav_audio", "png_lsb"]


def test_mime_lookup_ignores_parameters_and_case():
    registry = default_registry()
    assert normalize_mime("Text/HTML; charset=UTF-8") == "text/html"
    codecs = registry.codecs_for_mime("text/html; charset=utf-8", Role.SERVER)
    assert [c.technique for c in codecs] == ["html_comment", "html_audio", "html_nested_div"]
    assert registry.by_mime("TEXT/CSS", Role.SERVER).technique == "css_paint_worklet"


def test_mime_lookup_respects_role():
    registry = default_registry()
    with pytest.raises(UnsupportedMimeType):
        registry.codecs_for_mime("text/css", Role.CLIENT)
    with pytest.raises(UnsupportedMimeType):
        registry.by_mime("application/x-unknown", Role.SERVER)


def test_capacity_and_mime_listing():
    registry = default_registry()
    assert registry.capacity("json_metadata", Role.CLIENT) == 768
    assert registry.capacity("json_metadata", Role.SERVER) == 1024
    assert registry.capacity("html_nested_div", Role.CLIENT) == 0
    assert registry.mime_types(Role.CLIENT) == (
        "application/json",
        "application/xml",
        "image/svg+xml",
        "audio/wav",
        "image/png",
    )
    assert "application/rss+xml" in registry.mime_types()


def test_duplicate_techniques_are_rejected():
    with pytest.raises(ConfigurationError):
        CodecRegistry([JsonMetadataCodec(), JsonMetadataCodec()])


def test_restricted_registry_keeps_priority_order():
    registry = default_registry().restricted(["wav_audio", "json_metadata"])
    assert registry.techniques() == ("json_metadata", "wav_audio")
    with pytest.raises(ConfigurationError):
        default_registry().restricted(["nope"])


def test_selector_honours_explicit_mime(rng):
    selector = MimeSelector(default_registry(), rng)
    for _ in range(20):
        assert selector.select("image/svg+xml", Role.CLIENT).technique == "svg_path"


def test_selector_weights_bias_choice():
    registry = CodecRegistry([JsonMetadataCodec(), XmlConfigCodec()])
    selector = MimeSelector(registry, random.Random(3), {"xml_config": 50.0})
    picks = Counter(selector.select(None, Role.CLIENT).technique for _ in range(200))
    assert picks["xml_config"] > picks["json_metadata"]


def test_selector_rejects_unknown_weights():
    with pytest.raises(ConfigurationError):
        MimeSelector(default_registry(), weights={"nope": 1.0})
