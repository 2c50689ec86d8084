"""
FilterCatalog -- Known asset types and bases.

Responsibility:
    Supplies the values the dashboard offers as filters and the sets the
    Movement Record Model validates against.  The catalog is the union of
    the configured seed values and every value observed in stored records.

Architecture position:
    Kernel > Services.  Reads through MovementSelector; never writes.

Invariants enforced:
    - Every value ever written to a record is eventually listed.  The
      Ledger Store invalidates the cache after each append and again when
      the appending transaction commits or rolls back.
    - Listings are sorted, so repeated calls return the same order.

Concurrency:
    The observed-value cache is shared by every request; a lock guards
    refresh and invalidation.
"""

from __future__ import annotations

import threading
from typing import Iterable

from sqlalchemy.orm import Session

from asset_kernel.domain.movement import CatalogSnapshot
from asset_kernel.logging_config import get_logger
from asset_kernel.selectors.movement_selector import MovementSelector

logger = get_logger("services.filter_catalog")


class FilterCatalog:
    """
    Cached catalog of asset types and bases.

    Args:
        seed_asset_types: Configured asset types, listed even before any
            record names them.
        seed_bases: Configured bases.  Must be non-empty in practice, or no
            first movement can pass base validation.
        strict: Reject unknown values on write.
        purchases_introduce_types: Allow a Purchase to name a new type.
    """

    def __init__(
        self,
        seed_asset_types: Iterable[str] = (),
        seed_bases: Iterable[str] = (),
        strict: bool = True,
        purchases_introduce_types: bool = True,
    ):
        self._seed_asset_types = frozenset(seed_asset_types)
        self._seed_bases = frozenset(seed_bases)
        self._strict = strict
        self._purchases_introduce_types = purchases_introduce_types
        self._lock = threading.Lock()
        self._observed_types: frozenset[str] | None = None
        self._observed_bases: frozenset[str] | None = None

    @classmethod
    def from_config(cls, catalog_config) -> FilterCatalog:
        """Build from an ``asset_config`` CatalogConfig."""
        return cls(
            seed_asset_types=catalog_config.asset_types,
            seed_bases=catalog_config.bases,
            strict=catalog_config.strict,
            purchases_introduce_types=catalog_config.purchases_introduce_types,
        )

    def _observed(self, session: Session) -> tuple[frozenset[str], frozenset[str]]:
        with self._lock:
            if self._observed_types is None or self._observed_bases is None:
                selector = MovementSelector(session)
                self._observed_types = frozenset(selector.distinct_asset_types())
                self._observed_bases = frozenset(selector.distinct_bases())
                logger.debug(
                    "catalog_refreshed",
                    extra={
                        "asset_type_count": len(self._observed_types),
                        "base_count": len(self._observed_bases),
                    },
                )
            return self._observed_types, self._observed_bases

    def list_known_types(self, session: Session) -> list[str]:
        types, _ = self._observed(session)
        return sorted(self._seed_asset_types | types)

    def list_known_bases(self, session: Session) -> list[str]:
        _, bases = self._observed(session)
        return sorted(self._seed_bases | bases)

    def snapshot(self, session: Session) -> CatalogSnapshot:
        """Point-in-time catalog for validating one request."""
        types, bases = self._observed(session)
        return CatalogSnapshot(
            asset_types=self._seed_asset_types | types,
            bases=self._seed_bases | bases,
            strict=self._strict,
            purchases_introduce_types=self._purchases_introduce_types,
        )

    def invalidate(self) -> None:
        """Drop observed values; the next read queries the store again."""
        with self._lock:
            self._observed_types = None
            self._observed_bases = None
