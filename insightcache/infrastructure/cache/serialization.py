"""Payload serialization for the cache tiers.

Turns payloads into JSON-safe documents for the disk tier and decodes stored
documents back into the type a caller asks for. Payload types are identified
by a tag resolved against an explicit registry, never by importing names
found in cache files.
"""

import dataclasses
import json
import logging
import types
import typing
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Type

logger = logging.getLogger(__name__)

_MISSING = object()


class PayloadSerializer:
    """Encodes payloads to documents and decodes them back on read."""

    def __init__(self) -> None:
        self._types_by_tag: Dict[str, type] = {}
        self._tags_by_type: Dict[type, str] = {}

    def register(self, cls: Type[Any], tag: Optional[str] = None) -> Type[Any]:
        """Registers a payload type so untyped reads can rebuild it.

        Usable as a plain call or as a class decorator.
        """
        name = tag or cls.__qualname__
        existing = self._types_by_tag.get(name)
        if existing is not None and existing is not cls:
            raise ValueError(f"Type tag '{name}' is already registered for {existing!r}")
        self._types_by_tag[name] = cls
        self._tags_by_type[cls] = name
        logger.debug(f"Registered cache payload type {cls!r} as '{name}'")
        return cls

    def type_tag(self, value: Any) -> Optional[str]:
        return self._tags_by_type.get(type(value))

    def to_document(self, value: Any) -> Any:
        """Converts a payload into plain dicts, lists and primitives."""
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return {f.name: self.to_document(getattr(value, f.name)) for f in dataclasses.fields(value)}
        if isinstance(value, dict):
            return {str(k): self.to_document(v) for k, v in value.items()}
        if isinstance(value, (list, tuple, set, frozenset)):
            return [self.to_document(v) for v in value]
        if isinstance(value, datetime):
            return value.isoformat()
        return value

    def decode(self, raw: Any, target: Any = None, type_tag: Optional[str] = None) -> Optional[Any]:
        """Decodes a stored payload.

        Args:
            raw: The stored payload (native value or generic document).
            target: Optional type, or a function turning the document into a value.
            type_tag: Tag stored alongside the payload, used when no target is given.

        Returns:
            The decoded value, or None when it cannot be produced.
        """
        if raw is None:
            return None

        if target is None:
            registered = self._types_by_tag.get(type_tag) if type_tag else None
            if registered is None:
                return raw
            target = registered

        if target is Any:
            return raw

        if not isinstance(target, type) and typing.get_origin(target) is None:
            return self._apply_decoder(raw, target)

        if _is_instance(raw, target):
            return raw

        converted = self._convert(raw, target)
        if converted is not _MISSING:
            return converted

        # Last resort: normalize through a textual round trip and retry
        try:
            document = json.loads(json.dumps(self.to_document(raw)))
        except (TypeError, ValueError) as e:
            logger.debug(f"Textual round trip failed for {type(raw).__name__}: {e}")
            return None
        if _is_instance(document, target):
            return document
        converted = self._convert(document, target)
        if converted is not _MISSING:
            return converted

        logger.debug(f"Could not decode cached {type(raw).__name__} into {target!r}")
        return None

    def _apply_decoder(self, raw: Any, decoder: Callable[[Any], Any]) -> Optional[Any]:
        try:
            return decoder(raw)
        except Exception as e:
            logger.debug(f"Cache decoder {decoder!r} rejected payload: {e}")
            return None

    def _convert(self, raw: Any, target: Any) -> Any:
        """Structured conversion of a document into target. Returns _MISSING on failure."""
        origin = typing.get_origin(target)
        if origin in (typing.Union, types.UnionType):
            options = typing.get_args(target)
            if raw is None and type(None) in options:
                return None
            for option in options:
                if option is type(None):
                    continue
                if _is_instance(raw, option):
                    return raw
                converted = self._convert(raw, option)
                if converted is not _MISSING:
                    return converted
            return _MISSING
        if origin in (list, tuple, set, frozenset):
            if not isinstance(raw, (list, tuple, set, frozenset)):
                return _MISSING
            args = typing.get_args(target)
            item_type = args[0] if args and args[0] is not Ellipsis else None
            items = []
            for item in raw:
                value = self._convert_item(item, item_type)
                if value is _MISSING:
                    return _MISSING
                items.append(value)
            return origin(items)
        if origin is dict:
            if not isinstance(raw, dict):
                return _MISSING
            args = typing.get_args(target)
            value_type = args[1] if len(args) == 2 else None
            result = {}
            for k, v in raw.items():
                value = self._convert_item(v, value_type)
                if value is _MISSING:
                    return _MISSING
                result[k] = value
            return result
        if not isinstance(target, type):
            return _MISSING

        if dataclasses.is_dataclass(target):
            if not isinstance(raw, dict):
                return _MISSING
            return self._build_dataclass(raw, target)
        if target is datetime and isinstance(raw, str):
            try:
                return datetime.fromisoformat(raw)
            except ValueError:
                return _MISSING
        if target is float and isinstance(raw, int) and not isinstance(raw, bool):
            return float(raw)
        if target in (list, tuple, set, frozenset) and isinstance(raw, (list, tuple, set, frozenset)):
            return target(raw)
        if target in (str, int, float, bool, dict, list):
            return _MISSING
        if isinstance(raw, dict):
            try:
                return target(**raw)
            except Exception as e:
                logger.debug(f"Keyword construction of {target!r} failed: {e}")
                return _MISSING
        return _MISSING

    def _convert_item(self, item: Any, item_type: Any) -> Any:
        if item_type is None or item_type is Any or _is_instance(item, item_type):
            return item
        return self._convert(item, item_type)

    def _build_dataclass(self, raw: Dict[str, Any], target: type) -> Any:
        try:
            hints = typing.get_type_hints(target)
        except Exception:
            hints = {}
        kwargs = {}
        for f in dataclasses.fields(target):
            if not f.init or f.name not in raw:
                continue
            value = self._convert_item(raw[f.name], hints.get(f.name))
            if value is _MISSING:
                return _MISSING
            kwargs[f.name] = value
        try:
            return target(**kwargs)
        except TypeError as e:
            logger.debug(f"Dataclass {target.__name__} rejected cached fields: {e}")
            return _MISSING


def _is_instance(value: Any, target: Any) -> bool:
    """isinstance that tolerates parameterized generics such as Dict[str, int]."""
    if target is Any:
        return True
    origin = typing.get_origin(target)
    if origin is not None:
        # Only trust the container check when there is nothing to convert inside
        return False
    if not isinstance(target, type):
        return False
    if target is float and isinstance(value, bool):
        return False
    return isinstance(value, target)
