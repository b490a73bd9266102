"""Engine configuration."""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from .exceptions import ConfigurationError

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class EngineConfig:
    """Tunables shared by the packetizer, selector and dispatcher."""

    techniques: Optional[Tuple[str, ...]] = None
    weights: Dict[str, float] = field(default_factory=dict)
    max_chunk_bytes: Optional[int] = None
    verify_crc: bool = True
    host: Optional[str] = None

    def __post_init__(self) -> None:  # pragma: no cover - dataclass hook
        if self.techniques is not None:
            if isinstance(self.techniques, str) or not all(
                isinstance(name, str) and name for name in self.techniques
            ):
                raise ConfigurationError("'techniques' must be a sequence of technique names")
            object.__setattr__(self, "techniques", tuple(self.techniques))
            if not self.techniques:
                raise ConfigurationError("'techniques' must not be empty when provided")
        if not isinstance(self.weights, Mapping):
            raise ConfigurationError("'weights' must be a mapping")
        for name, weight in self.weights.items():
            if not isinstance(weight, (int, float)) or isinstance(weight, bool) or weight <= 0:
                raise ConfigurationError(f"weight for '{name}' must be a positive number")
        object.__setattr__(self, "weights", {str(k): float(v) for k, v in self.weights.items()})
        if self.max_chunk_bytes is not None:
            if (
                not isinstance(self.max_chunk_bytes, int)
                or isinstance(self.max_chunk_bytes, bool)
                or self.max_chunk_bytes <= 0
            ):
                raise ConfigurationError("'max_chunk_bytes' must be a positive integer")
        if not isinstance(self.verify_crc, bool):
            raise ConfigurationError("'verify_crc' must be a boolean")
        if self.host is not None and (not isinstance(self.host, str) or not self.host.strip()):
            raise ConfigurationError("'host' must be a non-empty string")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"verify_crc": self.verify_crc}
        if self.techniques is not None:
            data["techniques"] = list(self.techniques)
        if self.weights:
            data["weights"] = dict(self.weights)
        if self.max_chunk_bytes is not None:
            data["max_chunk_bytes"] = self.max_chunk_bytes
        if self.host is not None:
            data["host"] = self.host
        return data

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "EngineConfig":
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ConfigurationError("configuration must be an object")
        unknown = set(data) - {"techniques", "weights", "max_chunk_bytes", "verify_crc", "host"}
        if unknown:
            raise ConfigurationError(f"unknown configuration keys: {', '.join(sorted(unknown))}")
        techniques = data.get("techniques")
        if techniques is not None and not isinstance(techniques, (list, tuple)):
            raise ConfigurationError("'techniques' must be a list")
        return cls(
            techniques=tuple(techniques) if techniques is not None else None,
            weights=data.get("weights") or {},
            max_chunk_bytes=data.get("max_chunk_bytes"),
            verify_crc=data.get("verify_crc", True),
            host=data.get("host"),
        )

    @classmethod
    def from_file(cls, path: str) -> "EngineConfig":
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigurationError(f"cannot read configuration file {path}") from exc
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"failed to parse configuration file {path}") from exc
        return cls.from_mapping(raw)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Build a configuration from ``RAINBOWSTEGO_*`` environment variables."""

        env = os.environ if environ is None else environ
        data: Dict[str, Any] = {}

        techniques = env.get("RAINBOWSTEGO_TECHNIQUES")
        if techniques:
            data["techniques"] = [name.strip() for name in techniques.split(",") if name.strip()]

        max_chunk = env.get("RAINBOWSTEGO_MAX_CHUNK")
        if max_chunk:
            try:
                data["max_chunk_bytes"] = int(max_chunk)
            except ValueError as exc:
                raise ConfigurationError("RAINBOWSTEGO_MAX_CHUNK must be an integer") from exc

        verify = env.get("RAINBOWSTEGO_VERIFY_CRC")
        if verify:
            lowered = verify.lower()
            if lowered in _TRUE_VALUES:
                data["verify_crc"] = True
            elif lowered in _FALSE_VALUES:
                data["verify_crc"] = False
            else:
                raise ConfigurationError("RAINBOWSTEGO_VERIFY_CRC must be a boolean flag")

        host = env.get("RAINBOWSTEGO_HOST")
        if host:
            data["host"] = host

        return cls.from_mapping(data)


__all__ = ["EngineConfig"]
