"""Content-addressable artifact keys.

A key is a short prefix of a digest over a canonical JSON rendering of
whatever determines an artifact's bytes. Equal inputs always give equal
keys; distinct inputs colliding is an accepted risk governed by
``key_length``.
"""

import hashlib
import json
from pathlib import Path
from typing import Any, Callable, Union

from pydantic import BaseModel

__all__ = ['ArtifactKeyer', 'canonical']


def _normalize(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return _normalize(value.model_dump(mode="json"))
    if isinstance(value, dict):
        return {str(k): _normalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    if isinstance(value, bytes):
        # Content, not identity: hash the bytes themselves
        return {"sha256": hashlib.sha256(value).hexdigest()}
    if isinstance(value, Path):
        return str(value)
    return value


def canonical(value: Any) -> str:
    """Stable JSON text for ``value`` (sorted keys, no whitespace)."""
    return json.dumps(_normalize(value), sort_keys=True, separators=(",", ":"))


class ArtifactKeyer:
    """Computes ArtifactKeys.

    Parameters
    ----------
    digest : str or callable, optional
        A :mod:`hashlib` algorithm name, or a callable mapping ``bytes`` to
        a hex string. Default ``"sha1"``.
    length : int, optional
        Number of hex characters kept (default 10).
    """

    def __init__(self, digest: Union[str, Callable[[bytes], str]] = "sha1", length: int = 10):
        if isinstance(digest, str):
            name = digest
            self._digest = lambda data: hashlib.new(name, data).hexdigest()
        else:
            self._digest = digest
        self.length = length

    @classmethod
    def from_config(cls, config) -> "ArtifactKeyer":
        return cls(config.cache.digest, config.cache.key_length)

    def key(self, value: Any) -> str:
        return self._digest(canonical(value).encode("utf-8"))[:self.length]
