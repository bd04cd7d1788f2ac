"""Derive lock keys from a protected call.

Default keys are ``"<module>.<qualname>:<sha256 of the arguments>"``. Arguments
are encoded as canonical JSON (sorted keys, compact separators, tuples become
lists) so the same arguments give the same key in every process. Arguments
that JSON cannot encode (objects, bound ``self``, bytes, sets) make the key
fall back to the operation identity alone, which means every call of that
operation shares one lock. Pass an explicit key when that is too coarse.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from distlock.utils.logging import get_logger


logger = get_logger("Fingerprint")

KeySpec = Union[str, Callable[..., str], None]


def operation_identity(fn: Callable[..., Any]) -> str:
    """Fully qualified name of a callable."""
    module = getattr(fn, "__module__", None) or "<unknown>"
    qualname = getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None) or repr(fn)
    return f"{module}.{qualname}"


def encode_arguments(args: Sequence[Any], kwargs: Mapping[str, Any]) -> Optional[str]:
    """Canonical JSON for the call arguments, or ``None`` if they cannot be encoded."""
    try:
        return json.dumps(
            {"args": list(args), "kwargs": dict(kwargs)},
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=True,
            allow_nan=False,
        )
    except (TypeError, ValueError):
        return None


def resolve_key(
    identity: str,
    args: Sequence[Any] = (),
    kwargs: Optional[Mapping[str, Any]] = None,
    explicit_key: KeySpec = None,
) -> str:
    kwargs = kwargs or {}
    if callable(explicit_key):
        return str(explicit_key(*args, **kwargs))
    if explicit_key:
        return explicit_key

    encoded = encode_arguments(args, kwargs)
    if encoded is None:
        logger.debug("Arguments of %s are not JSON-encodable; locking on identity only", identity)
        return identity
    digest = hashlib.sha256(encoded.encode("utf-8")).hexdigest()
    return f"{identity}:{digest}"
