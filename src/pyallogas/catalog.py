"""Static seller catalog.

The catalog is reference data for the session: the ranker and the
resolvers only ever read it.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from pyallogas._constants import KNOWN_BRANDS
from pyallogas.exceptions import AllogasConfigError
from pyallogas.models.seller import Seller

_logger = logging.getLogger(__name__)


class SellerCatalog:
    """Ordered, read-only collection of :class:`Seller` records.

    Iteration order is the insertion order, which is also the tie-break
    order used by the ranker.
    """

    def __init__(self, sellers: Iterable[Seller]) -> None:
        self._sellers: tuple[Seller, ...] = tuple(sellers)
        self._by_id: dict[str, Seller] = {}
        for seller in self._sellers:
            if seller.id in self._by_id:
                raise AllogasConfigError(f"Duplicate seller id in catalog: {seller.id!r}")
            self._by_id[seller.id] = seller

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> SellerCatalog:
        """Build a catalog from camelCase seller dicts.

        Raises :class:`AllogasConfigError` naming the offending record when
        one does not validate.
        """
        sellers: list[Seller] = []
        for index, record in enumerate(records):
            try:
                sellers.append(Seller.model_validate(dict(record)))
            except ValidationError as exc:
                raise AllogasConfigError(f"Invalid seller record #{index}: {exc}") from exc
        return cls(sellers)

    @classmethod
    def from_json(cls, path: str | Path) -> SellerCatalog:
        """Load a catalog from a JSON file holding a list (or ``{"sellers": [...]}``)."""
        file_path = Path(path)
        try:
            data = json.loads(file_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise AllogasConfigError(f"Cannot read seller catalog {file_path}: {exc}") from exc
        if isinstance(data, dict):
            data = data.get("sellers", [])
        if not isinstance(data, list):
            raise AllogasConfigError(f"Seller catalog {file_path} must contain a list of sellers")
        catalog = cls.from_records(data)
        _logger.debug("Loaded %d sellers from %s", len(catalog), file_path)
        return catalog

    def __iter__(self) -> Iterator[Seller]:
        return iter(self._sellers)

    def __len__(self) -> int:
        return len(self._sellers)

    def __contains__(self, seller_id: object) -> bool:
        return seller_id in self._by_id

    def get(self, seller_id: str) -> Seller | None:
        return self._by_id.get(seller_id)

    @property
    def sellers(self) -> tuple[Seller, ...]:
        return self._sellers

    def brands(self) -> list[str]:
        """Known brands plus any others present in the catalog, without duplicates."""
        seen: dict[str, str] = {brand.casefold(): brand for brand in KNOWN_BRANDS}
        for seller in self._sellers:
            if seller.brand and seller.brand.casefold() not in seen:
                seen[seller.brand.casefold()] = seller.brand
        return list(seen.values())

    def suggest_brands(self, query: str) -> list[str]:
        """Brands containing *query* (case-insensitive), for search autocompletion."""
        needle = query.casefold()
        return [brand for brand in self.brands() if needle in brand.casefold()]
