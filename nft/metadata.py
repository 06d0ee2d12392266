"""
Capability Mint Authority - Asset Metadata Helpers

Normalizes the metadata and attribute inputs accepted by mint calls into the
registry's ``AssetMetadata`` and ``Attribute`` models. Attributes are an
ordered list of key/value pairs; keys may repeat.
"""

from typing import Any, Dict, Iterable, List, Mapping, Union

from pydantic import ValidationError

from registry.schema import AssetMetadata, Attribute

from .exceptions import AttributeFormatError


AttributeInput = Union[
    Mapping[str, Any],
    Iterable[Union[Attribute, Mapping[str, Any], tuple]],
    None,
]


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def normalize_attributes(attributes: AttributeInput) -> List[Attribute]:
    """
    Accept a mapping, a list of ``(key, value)`` pairs, a list of dicts using
    either ``key``/``value`` or ``trait_type``/``value``, or Attribute objects.
    Order is preserved; duplicate keys are kept.
    """
    if attributes is None:
        return []

    if isinstance(attributes, Mapping):
        items = list(attributes.items())
    else:
        items = list(attributes)

    result = []
    for item in items:
        if isinstance(item, Attribute):
            result.append(item)
            continue

        if isinstance(item, Mapping):
            key = item.get('key', item.get('trait_type'))
            if key is None or 'value' not in item:
                raise AttributeFormatError(f"Attribute entry missing key or value: {item}")
            value = item['value']
        elif isinstance(item, tuple) and len(item) == 2:
            key, value = item
        else:
            raise AttributeFormatError(f"Unsupported attribute entry: {item!r}")

        try:
            result.append(Attribute(key=str(key), value=_stringify(value)))
        except ValidationError as e:
            raise AttributeFormatError(f"Invalid attribute {key!r}: {e}")

    return result


def build_asset_metadata(metadata: Union[AssetMetadata, Dict[str, Any]]) -> AssetMetadata:
    """Coerce a dict (``name``, ``description``, ``media_url`` or ``image_url``)."""
    if isinstance(metadata, AssetMetadata):
        return metadata

    data = dict(metadata)
    if 'media_url' not in data and 'image_url' in data:
        data['media_url'] = data.pop('image_url')
    data.pop('image_url', None)
    return AssetMetadata(**data)


def attributes_to_dict(attributes: Iterable[Attribute]) -> List[Dict[str, str]]:
    """JSON-ready view in the common ``trait_type``/``value`` form."""
    return [{"trait_type": a.key, "value": a.value} for a in attributes]
