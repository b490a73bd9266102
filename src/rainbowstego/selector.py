"""Per-chunk carrier selection."""
from __future__ import annotations

import logging
import random
from typing import Mapping, Optional

from .codec import CarrierCodec, Role
from .exceptions import ConfigurationError, UnsupportedMimeType
from .registry import CodecRegistry

logger = logging.getLogger(__name__)


class MimeSelector:
    """Pick the codec for the next chunk.

    With an explicit MIME type the choice is random among the codecs serving
    that type; otherwise it is a weighted draw over every codec compatible
    with the role. Techniques missing from *weights* weigh 1.0.
    """

    def __init__(
        self,
        registry: CodecRegistry,
        rng: Optional[random.Random] = None,
        weights: Optional[Mapping[str, float]] = None,
    ) -> None:
        self.registry = registry
        self.rng = rng or random.Random()
        self.weights = dict(weights or {})
        unknown = [name for name in self.weights if name not in registry]
        if unknown:
            raise ConfigurationError(f"weights name unknown techniques: {', '.join(sorted(unknown))}")

    def select(self, explicit_mime: Optional[str], role: Role) -> CarrierCodec:
        if explicit_mime:
            candidates = self.registry.codecs_for_mime(explicit_mime, role)
        else:
            candidates = self.registry.compatible_codecs(role)
            if not candidates:
                raise UnsupportedMimeType(f"no codec can carry {role.value} traffic")
        if len(candidates) == 1:
            return candidates[0]
        weights = [self.weights.get(codec.technique, 1.0) for codec in candidates]
        codec = self.rng.choices(candidates, weights=weights, k=1)[0]
        logger.debug("selected %s among %d candidates", codec.technique, len(candidates))
        return codec


__all__ = ["MimeSelector"]
