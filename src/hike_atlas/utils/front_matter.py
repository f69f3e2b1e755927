"""
Reading and writing the YAML front matter block of Markdown/MDX documents.
"""

import re
from typing import Any, Dict, Tuple

import yaml

_FRONT_MATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE)


def parse_front_matter(text: str) -> Tuple[Dict[str, Any], str]:
    """
    Splits a document into its front matter mapping and body.

    A document without a front matter block yields an empty mapping and the
    unchanged text as body.
    """
    match = _FRONT_MATTER_RE.match(text)
    if not match:
        return {}, text

    data = yaml.safe_load(match.group(1)) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Front matter must be a mapping, got {type(data).__name__}")
    return data, text[match.end():]


def dump_front_matter(data: Dict[str, Any], body: str) -> str:
    """Joins a front matter mapping and a body; key order is preserved."""
    header = yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)
    return f"---\n{header}---\n{body}"


def update_front_matter(text: str, updates: Dict[str, Any]) -> str:
    """Merges `updates` into the document's front matter, leaving the body untouched."""
    data, body = parse_front_matter(text)
    data.update(updates)
    return dump_front_matter(data, body)
