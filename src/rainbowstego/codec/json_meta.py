"""JSON API payload carrier."""
from __future__ import annotations

import json
import random
import time

from . import decoy
from .base import BOTH_ROLES, CarrierCodec, Role, b64encode


class JsonMetadataCodec(CarrierCodec):
    """Chunk stored base64 encoded in the ``metadata`` field of a JSON object."""

    technique = "json_metadata"
    mime_type = "application/json"
    roles = BOTH_ROLES
    capacities = {Role.CLIENT: 768, Role.SERVER: 1024}

    def _embed(self, chunk: bytes, role: Role, rng: random.Random) -> bytes:
        document = {
            "type": "metadata",
            "id": f"{rng.getrandbits(128):032x}",
            "version": f"1.{rng.randint(0, 9)}.{rng.randint(0, 20)}",
            "timestamp": int(time.time()),
            "description": decoy.sentence(rng),
            "tags": decoy.words(rng, rng.randint(1, 4)),
            "metadata": b64encode(chunk),
            "size": len(chunk),
        }
        if role is Role.SERVER:
            document["status"] = "ok"
        indent = 2 if rng.random() < 0.5 else None
        return json.dumps(document, indent=indent).encode("utf-8")

    def _extract(self, body: bytes, role: Role) -> bytes:
        try:
            document = json.loads(self.text(body))
        except json.JSONDecodeError as exc:
            raise self.corrupt(f"invalid JSON: {exc}") from exc
        if not isinstance(document, dict) or document.get("type") != "metadata":
            raise self.corrupt("not a metadata document")
        encoded = document.get("metadata")
        size = document.get("size")
        if not isinstance(encoded, str):
            raise self.corrupt("metadata field is missing")
        if not isinstance(size, int) or isinstance(size, bool):
            raise self.corrupt("size field is missing")
        data = self.b64decode(encoded)
        if len(data) != size:
            raise self.corrupt(f"metadata holds {len(data)} bytes, size says {size}")
        return data


__all__ = ["JsonMetadataCodec"]
