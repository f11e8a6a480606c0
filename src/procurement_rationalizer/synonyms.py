"""Synonym registry — resolve raw column headers to canonical procurement fields."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Union

from procurement_rationalizer.utils import capitalize_words

logger = logging.getLogger(__name__)

# Key = canonical display name, value = known aliases (matched after
# trim + lower-case). Each canonical name is also an alias of itself.
COLUMN_SYNONYMS: dict[str, tuple[str, ...]] = {
    # ---- identifiers ----
    "Part Number": (
        "part number", "part no", "part no.", "part #", "part#", "p/n", "pn",
        "part", "part num", "item number", "item no", "item #", "sku",
        "material number", "material no",
    ),
    "Manufacturer Part Number": ("mpn", "mfg part number", "mfr part number", "mfr p/n"),
    "PO Number": ("po", "po #", "po number", "po no", "purchase order", "purchase order number"),
    # ---- description ----
    "Description": (
        "desc", "desc.", "description", "item description", "part description",
        "long description", "short description", "item desc",
    ),
    "Category": ("category", "commodity", "commodity code", "item category", "class"),
    # ---- quantities ----
    "Quantity": ("qty", "qty.", "quantity", "units", "count", "amount", "order qty"),
    "Unit of Measure": ("uom", "u/m", "unit", "unit of measure", "unit of measurement", "measure"),
    # ---- money ----
    "Unit Price": ("price", "unit price", "unit cost", "cost", "price each", "unit rate"),
    "Total Price": ("total", "total price", "extended price", "ext price", "line total", "total cost"),
    "Currency": ("currency", "curr", "ccy"),
    # ---- parties ----
    "Manufacturer": ("manufacturer", "mfg", "mfg.", "mfr", "make", "brand"),
    "Vendor": ("vendor", "vendor name", "supplier", "supplier name", "seller"),
    # ---- dates / timing ----
    "Lead Time": ("lead time", "leadtime", "lead time (days)", "lt"),
    "Order Date": ("order date", "po date", "date ordered", "date"),
}


@dataclass(frozen=True)
class Canonical:
    """Header matched a registry alias."""

    name: str


@dataclass(frozen=True)
class Derived:
    """Header had no alias; *name* is its title-cased passthrough."""

    name: str


Resolution = Union[Canonical, Derived]


def normalize_header(raw: str) -> str:
    """Trim and lower-case *raw* for alias lookup."""
    return raw.strip().lower()


def _build_index(synonyms: Mapping[str, Iterable[str]]) -> dict[str, str]:
    # Canonical names first so an explicit alias always wins over a name.
    index: dict[str, str] = {
        normalize_header(canonical): canonical for canonical in synonyms
    }
    for canonical, aliases in synonyms.items():
        for alias in aliases:
            key = normalize_header(alias)
            if not key:
                continue
            previous = index.get(key)
            if previous is not None and previous != canonical:
                logger.debug("Alias %r remapped from %r to %r", key, previous, canonical)
            index[key] = canonical
    return index


class SynonymRegistry:
    """Reverse alias → canonical index, built once per instance."""

    def __init__(self, synonyms: Mapping[str, Iterable[str]] | None = None) -> None:
        source = COLUMN_SYNONYMS if synonyms is None else synonyms
        self._synonyms: dict[str, tuple[str, ...]] = {
            canonical: tuple(aliases) for canonical, aliases in source.items()
        }
        self._index = _build_index(self._synonyms)

    @property
    def canonical_names(self) -> list[str]:
        return list(self._synonyms)

    def lookup(self, raw: str) -> Resolution:
        """Resolve *raw* into a tagged :class:`Canonical` or :class:`Derived`."""
        key = normalize_header(raw)
        canonical = self._index.get(key)
        if canonical is not None:
            return Canonical(canonical)
        return Derived(capitalize_words(key))

    def resolve(self, raw: str) -> str:
        """Return the canonical column name for *raw*."""
        return self.lookup(raw).name

    def with_aliases(self, extra: Mapping[str, Iterable[str]]) -> SynonymRegistry:
        """Return a new registry with *extra* aliases layered on top.

        Extra aliases win over built-in ones; unknown targets become new
        canonical names.
        """
        merged: dict[str, tuple[str, ...]] = dict(self._synonyms)
        for canonical, aliases in extra.items():
            target = canonical.strip()
            if not target:
                raise ValueError("Alias target must be a non-empty column name")
            merged[target] = (*merged.get(target, ()), *aliases)
        # Drop extra aliases from any other canonical so the override is unambiguous.
        overridden = {
            normalize_header(alias): canonical.strip()
            for canonical, aliases in extra.items()
            for alias in aliases
        }
        for canonical, aliases in list(merged.items()):
            merged[canonical] = tuple(
                alias
                for alias in aliases
                if overridden.get(normalize_header(alias), canonical) == canonical
            )
        return SynonymRegistry(merged)


DEFAULT_REGISTRY = SynonymRegistry()
