"""Session-wide registry of loaded crate indexes."""

import logging
import threading
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any, Optional

from docsearch.indexing.loader import load_crate_index
from docsearch.indexing.models import CrateIndex

logger = logging.getLogger(__name__)


class IndexRegistry:
    """Maps crate name to its CrateIndex.

    Writers (register / unregister) are serialized by a lock and publish a
    new read-only mapping on every change. Readers never lock: ``snapshot``
    reads the current mapping once, so a query sees either the complete old
    state or the complete new one.
    """

    def __init__(self, crates: Iterable[CrateIndex] = ()) -> None:
        self._write_lock = threading.Lock()
        self._crates: Mapping[str, CrateIndex] = MappingProxyType({})
        for crate_index in crates:
            self.register(crate_index)

    def register(self, crate_index: CrateIndex) -> Optional[CrateIndex]:
        """Add or replace a crate. Returns the replaced index, if any."""
        with self._write_lock:
            updated = dict(self._crates)
            previous = updated.get(crate_index.crate_name)
            updated[crate_index.crate_name] = crate_index
            self._crates = MappingProxyType(updated)

        if previous is not None:
            logger.info(
                "Replaced crate %s (%d -> %d items)",
                crate_index.crate_name, len(previous.items), len(crate_index.items),
                extra={"crate": crate_index.crate_name},
            )
        else:
            logger.info(
                "Registered crate %s (%d items)",
                crate_index.crate_name, len(crate_index.items),
                extra={"crate": crate_index.crate_name},
            )
        return previous

    def unregister(self, crate_name: str) -> bool:
        """Remove a crate from future snapshots. Returns False if it was not loaded."""
        with self._write_lock:
            if crate_name not in self._crates:
                return False
            updated = dict(self._crates)
            del updated[crate_name]
            self._crates = MappingProxyType(updated)
        logger.info("Unregistered crate %s", crate_name, extra={"crate": crate_name})
        return True

    def snapshot(self) -> tuple[CrateIndex, ...]:
        crates = self._crates
        return tuple(crates.values())

    def get(self, crate_name: str) -> Optional[CrateIndex]:
        return self._crates.get(crate_name)

    def crate_names(self) -> list[str]:
        return sorted(self._crates)

    def __contains__(self, crate_name: object) -> bool:
        return crate_name in self._crates

    def __len__(self) -> int:
        return len(self._crates)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, raw: Mapping[str, Any]) -> CrateIndex:
        """Validate one raw payload and register it."""
        crate_index = load_crate_index(raw)
        self.register(crate_index)
        return crate_index

    def load_payloads(self, payloads: Iterable[Mapping[str, Any]]) -> list[CrateIndex]:
        """Validate every payload, then register them all in one write.

        If any payload is malformed nothing is registered.
        """
        validated = [load_crate_index(raw) for raw in payloads]
        with self._write_lock:
            updated = dict(self._crates)
            for crate_index in validated:
                updated[crate_index.crate_name] = crate_index
            self._crates = MappingProxyType(updated)
        logger.info(
            "Registered %d crate(s): %s",
            len(validated), ", ".join(c.crate_name for c in validated),
        )
        return validated
