# src/bencodec/fields.py
import dataclasses
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple, get_type_hints

from bencodec import config
from bencodec.errors import UnsupportedTypeError


@dataclasses.dataclass(frozen=True)
class FieldSpec:
    """How one record field appears on the wire."""
    name: str
    wire_name: str
    type: Any = Any
    omit: bool = False
    omit_if_default: bool = False


def parse_tag(tag: str) -> Tuple[str, bool, bool]:
    """
    Split a field tag such as "info_hash,omitempty" into its parts.

    Args:
        tag(str): the tag stored under the "bencode" metadata key

    Returns:
        Tuple[str, bool, bool]: wire name, omit flag, omit-if-default flag
    """
    name, comma, options = tag.partition(',')
    # "-," names a field "-"
    omit = name == config.OMIT_SENTINEL and not comma
    omit_empty = config.OMITEMPTY_OPTION in options.split(',')
    return name, omit, omit_empty


def bencode_field(name: Optional[str] = None, *, omit: bool = False,
                  omitempty: bool = False, **kwargs) -> Any:
    """
    dataclasses.field() with bencode metadata attached.

    Args:
        name(Optional[str]): key to use on the wire, defaults to the attribute name
        omit(bool): never encode or decode this field
        omitempty(bool): leave the field out while it holds a zero value
        **kwargs: passed through to dataclasses.field()
    """
    if omit:
        tag = config.OMIT_SENTINEL
    else:
        tag = name or ''
        if omitempty:
            tag += ',' + config.OMITEMPTY_OPTION
    metadata = dict(kwargs.pop('metadata', None) or {})
    metadata[config.FIELD_TAG] = tag
    return dataclasses.field(metadata=metadata, **kwargs)


def is_record(target: Any) -> bool:
    return isinstance(target, type) and dataclasses.is_dataclass(target)


def is_record_instance(value: Any) -> bool:
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


@lru_cache(maxsize=None)
def field_types(cls: type) -> Dict[str, Any]:
    try:
        return get_type_hints(cls)
    except NameError as e:
        raise UnsupportedTypeError(f"Cannot resolve field types of {cls.__name__}: {e}") from e


@lru_cache(maxsize=None)
def record_fields(cls: type) -> Tuple[FieldSpec, ...]:
    """
    Build the FieldSpec table for a dataclass, in declaration order.

    Private fields (leading underscore) are left out entirely.
    """
    hints = field_types(cls)

    specs = []
    seen = set()
    for f in dataclasses.fields(cls):
        if f.name.startswith('_'):
            continue

        tag = f.metadata.get(config.FIELD_TAG)
        if tag is None:
            spec = FieldSpec(f.name, f.name, hints.get(f.name, Any))
        else:
            wire_name, omit, omit_empty = parse_tag(tag)
            spec = FieldSpec(f.name, wire_name or f.name, hints.get(f.name, Any),
                             omit, omit_empty)

        if not spec.omit:
            if spec.wire_name in seen:
                raise UnsupportedTypeError(
                    f"{cls.__name__} uses wire name {spec.wire_name!r} more than once")
            seen.add(spec.wire_name)
        specs.append(spec)

    return tuple(specs)


def resolve(cls: type, wire_key: str) -> Optional[FieldSpec]:
    """Find the field a dictionary key decodes into; None drops the key"""
    for spec in record_fields(cls):
        if not spec.omit and spec.wire_name == wire_key:
            return spec
    return None


def is_zero(value: Any) -> bool:
    """Whether value equals its type's zero value, for omitempty"""
    if value is None:
        return True
    if is_record_instance(value):
        return all(is_zero(getattr(value, spec.name)) for spec in record_fields(type(value)))
    if hasattr(type(value), '__bool__') or hasattr(type(value), '__len__'):
        return not value
    return False


def is_frozen(cls: type) -> bool:
    params = getattr(cls, '__dataclass_params__', None)
    return bool(params and params.frozen)
