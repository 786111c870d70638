"""Cache keys for the configuration read views.

Keys are values, not strings: a ``CacheKey`` names one entry inside a
``CacheNamespace``, and a bare namespace stands for every entry under it.
Backends render both to strings with their own prefix.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class CacheNamespace(str, Enum):
    """Families of cached read views."""

    # Trims of one model year with resolved components
    CONFIGURATIONS = "configurations"
    # Same view over several years, keyed by the sorted year ids
    CONFIGURATIONS_MULTI = "configurations-multi"
    # Assignment list of one model
    MODEL_ASSIGNMENTS = "model-assignments"

    def render(self, prefix: str) -> str:
        """String prefix matching every key in this namespace."""
        return f"{prefix}:{self.value}:"


@dataclass(frozen=True, slots=True)
class CacheKey:
    namespace: CacheNamespace
    parts: tuple[str, ...]

    @classmethod
    def configurations(cls, year_id: UUID) -> CacheKey:
        return cls(CacheNamespace.CONFIGURATIONS, (str(year_id),))

    @classmethod
    def configurations_multi(cls, year_ids: Iterable[UUID]) -> CacheKey:
        return cls(
            CacheNamespace.CONFIGURATIONS_MULTI,
            tuple(sorted(str(year_id) for year_id in year_ids)),
        )

    @classmethod
    def model_assignments(cls, model_id: UUID) -> CacheKey:
        return cls(CacheNamespace.MODEL_ASSIGNMENTS, (str(model_id),))

    def render(self, prefix: str) -> str:
        return self.namespace.render(prefix) + ",".join(self.parts)


# What a QueryCache.invalidate call accepts: one key, or a whole namespace
InvalidationTarget = CacheKey | CacheNamespace
