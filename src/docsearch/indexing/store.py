"""Reads raw index payloads from disk.

Two file shapes are understood:

* ``*.json`` holding one payload object or a list of them.
* rustdoc ``search-index.js`` files made of
  ``searchIndex['crate'] = {...};`` assignments.

Reading never validates or registers; callers pass the payloads to
``load_crate_index`` / ``IndexRegistry.load_payloads``.
"""

import json
import logging
import re
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from docsearch.errors import PayloadReadError

logger = logging.getLogger(__name__)

_JS_ASSIGNMENT = re.compile(
    r"""^\s*searchIndex\[(?P<quote>['"])(?P<crate>[^'"]+)(?P=quote)\]\s*=\s*(?P<body>\{.*\})\s*;?\s*$""",
    re.MULTILINE,
)

_DIRECTORY_PATTERNS = ("*.json", "search-index*.js")


class PayloadStore:
    """Locates and decodes payload files."""

    def read(self, path: Path) -> list[dict[str, Any]]:
        path = Path(path)
        if path.is_dir():
            return self.read_all(self._discover(path))
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise PayloadReadError(path, exc.strerror or str(exc)) from exc

        if path.suffix == ".js":
            payloads = self._parse_search_index_js(path, text)
        else:
            payloads = self._parse_json(path, text)
        logger.debug("Read %d payload(s) from %s", len(payloads), path)
        return payloads

    def read_all(self, paths: Iterable[Path]) -> list[dict[str, Any]]:
        payloads: list[dict[str, Any]] = []
        for path in paths:
            payloads.extend(self.read(path))
        return payloads

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _discover(directory: Path) -> list[Path]:
        found: set[Path] = set()
        for pattern in _DIRECTORY_PATTERNS:
            found.update(p for p in directory.glob(pattern) if p.is_file())
        return sorted(found)

    @staticmethod
    def _parse_json(path: Path, text: str) -> list[dict[str, Any]]:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise PayloadReadError(path, f"invalid JSON: {exc}") from exc
        if isinstance(data, dict):
            return [data]
        if isinstance(data, list) and all(isinstance(entry, dict) for entry in data):
            return data
        raise PayloadReadError(path, "expected a payload object or a list of payload objects")

    @staticmethod
    def _parse_search_index_js(path: Path, text: str) -> list[dict[str, Any]]:
        payloads = []
        for match in _JS_ASSIGNMENT.finditer(text):
            crate = match.group("crate")
            try:
                body = json.loads(match.group("body"))
            except json.JSONDecodeError as exc:
                raise PayloadReadError(path, f"invalid index body for crate {crate!r}: {exc}") from exc
            if not isinstance(body, dict):
                raise PayloadReadError(path, f"index body for crate {crate!r} is not an object")
            body.setdefault("crateName", crate)
            payloads.append(body)
        if not payloads:
            raise PayloadReadError(path, "no searchIndex assignments found")
        return payloads
