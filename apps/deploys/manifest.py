"""
Image tag substitution for Helm values files.

The substitution is done on the raw text, line by line, so the committed
diff touches exactly one line: comments, key order, quoting style and
everything else in the file survive. PyYAML is only used to check that the
field exists before the edit and holds the new tag after it.
"""

from __future__ import annotations

import re
from typing import Any

import yaml
from django.conf import settings

from apps.deploys.dtos import ManifestMutation

_MISSING = object()

_KEY_RE = re.compile(r"""^(["']?)(?P<key>[^"':#]+?)\1\s*:(\s|$)""")
_SCALAR_RE = re.compile(
    r"""^(?P<prefix>\s*[^#]+?:[ \t]*)(?P<quote>["']?)(?P<value>[^"'#\s]*)(?P=quote)(?P<suffix>[ \t]*(?:#.*)?)$"""
)


def _lookup(document: Any, path: tuple[str, ...]) -> Any:
    node = document
    for key in path:
        if not isinstance(node, dict) or key not in node:
            return _MISSING
        node = node[key]
    return node


def _split_line_ending(line: str) -> tuple[str, str]:
    body = line.rstrip("\r\n")
    return body, line[len(body):]


class ManifestMutator:
    """Points one dotted field (default `image.tag`) at a new value."""

    def __init__(self, field_path: str | None = None):
        dotted = field_path or getattr(settings, "DEPLOY_MANIFEST_TAG_PATH", "image.tag")
        self.field_path = tuple(part for part in dotted.split(".") if part)
        self.dotted = ".".join(self.field_path)

    def apply(self, document: bytes, new_tag: str) -> ManifestMutation:
        try:
            text = document.decode("utf-8")
        except UnicodeDecodeError:
            return ManifestMutation(document, error="manifest is not valid UTF-8")

        try:
            parsed = yaml.safe_load(text)
        except yaml.YAMLError as e:
            return ManifestMutation(document, error=f"manifest is not valid YAML: {e}")

        current = _lookup(parsed, self.field_path)
        if current is _MISSING:
            return ManifestMutation(document, error=f"`{self.dotted}` not found in manifest")
        if isinstance(current, (dict, list)):
            return ManifestMutation(document, error=f"`{self.dotted}` is not a scalar value")

        lines = text.splitlines(keepends=True)
        index = self._locate(lines)
        if index is None:
            return ManifestMutation(
                document, error=f"`{self.dotted}` is not written as a block mapping entry"
            )

        body, ending = _split_line_ending(lines[index])
        match = _SCALAR_RE.match(body)
        if match is None:
            return ManifestMutation(
                document, error=f"`{self.dotted}` does not hold a plain scalar value"
            )

        # Unquoted commit prefixes like 1234567 or 12e4567 would load as numbers.
        quote = match.group("quote") or '"'
        prefix = match.group("prefix")
        if not prefix[-1].isspace():
            prefix += " "
        lines[index] = f"{prefix}{quote}{new_tag}{quote}{match.group('suffix')}{ending}"
        mutated_text = "".join(lines)

        if str(_lookup(yaml.safe_load(mutated_text), self.field_path)) != new_tag:
            return ManifestMutation(document, error=f"failed to rewrite `{self.dotted}`")

        return ManifestMutation(
            original_document=document,
            mutated_document=mutated_text.encode("utf-8"),
            message=f"`{self.dotted}` `{current}` → `{new_tag}`",
        )

    def _locate(self, lines: list[str]) -> int | None:
        """Index of the line holding the leaf key, following indentation."""
        parent_indent = -1
        start = 0
        found: int | None = None

        for key in self.field_path:
            found = None
            block_indent: int | None = None
            for idx in range(start, len(lines)):
                line = lines[idx]
                stripped = line.strip()
                if not stripped or stripped.startswith("#") or stripped in ("---", "..."):
                    continue
                indent = len(line) - len(line.lstrip(" "))
                if indent <= parent_indent:
                    break
                if block_indent is None:
                    block_indent = indent
                if indent != block_indent:
                    continue
                match = _KEY_RE.match(stripped)
                if match and match.group("key") == key:
                    found = idx
                    parent_indent = indent
                    start = idx + 1
                    break
            if found is None:
                return None

        return found
