"""Tag matching for tag-based resource discovery.

AWS services return tags in three shapes: a plain map (Lambda), a list of
``{"Key", "Value"}`` pairs (RDS, ElastiCache, App Runner, EC2) and a
CloudFront ``{"Items": [...]}`` envelope around such a list. Everything is
normalized to a map before comparison.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

TagInput = Mapping[str, Any] | Sequence[Mapping[str, Any]] | None


def normalize_tags(tags: TagInput) -> dict[str, str]:
    """Normalize any provider tag representation into a ``{key: value}`` map."""
    if not tags:
        return {}

    if isinstance(tags, Mapping):
        if "Items" in tags and isinstance(tags["Items"], (list, tuple)):
            return normalize_tags(tags["Items"])
        return {str(k): v for k, v in tags.items() if isinstance(v, str)}

    normalized: dict[str, str] = {}
    for tag in tags:
        key = tag.get("Key")
        value = tag.get("Value")
        if key and isinstance(value, str):
            normalized[key] = value
    return normalized


def tags_match(required: Mapping[str, str], actual: TagInput) -> bool:
    """Return True iff every required key is present with an identical value.

    Extra tags on the resource are ignored. A resource with no tags never
    matches.
    """
    tag_map = normalize_tags(actual)
    if not tag_map:
        return False
    return all(tag_map.get(key) == value for key, value in required.items())


def ec2_tag_filters(required: Mapping[str, str]) -> list[dict[str, Any]]:
    """Render required tags as EC2 ``DescribeInstances`` filters."""
    return [{"Name": f"tag:{key}", "Values": [value]} for key, value in required.items()]
