"""Carrier codecs that hide byte chunks inside HTTP bodies."""

from .audio import WavAudioCodec
from .base import BOTH_ROLES, SERVER_ONLY, CarrierCodec, Role
from .css import CssAnimationCodec, CssGridCodec, CssPaintWorkletCodec
from .font import FontPropertyCodec
from .html import HtmlAudioCodec, HtmlCommentCodec, HtmlNestedDivCodec
from .image import PngLsbCodec
from .json_meta import JsonMetadataCodec
from .svg import SvgPathCodec
from .xml_docs import XmlConfigCodec, XmlRssCodec

# Order matters: untagged bodies are sniffed in this sequence.
ALL_CODECS = (
    JsonMetadataCodec,
    XmlConfigCodec,
    XmlRssCodec,
    SvgPathCodec,
    WavAudioCodec,
    PngLsbCodec,
    HtmlCommentCodec,
    HtmlAudioCodec,
    HtmlNestedDivCodec,
    CssPaintWorkletCodec,
    CssAnimationCodec,
    FontPropertyCodec,
    CssGridCodec,
)

__all__ = [
    "ALL_CODECS",
    "BOTH_ROLES",
    "CarrierCodec",
    "CssAnimationCodec",
    "CssGridCodec",
    "CssPaintWorkletCodec",
    "FontPropertyCodec",
    "HtmlAudioCodec",
    "HtmlCommentCodec",
    "HtmlNestedDivCodec",
    "JsonMetadataCodec",
    "PngLsbCodec",
    "Role",
    "SERVER_ONLY",
    "SvgPathCodec",
    "WavAudioCodec",
    "XmlConfigCodec",
    "XmlRssCodec",
]
