"""Seller, filter and ranking models."""

from __future__ import annotations

import re
from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from pyallogas._constants import SMALL_BOTTLE_MAX_KG
from pyallogas.models._base import AllogasBaseModel
from pyallogas.models.coordinate import Coordinate

_KG_PATTERN = re.compile(r"^\s*(\d+(?:[.,]\d+)?)\s*kg\s*$", re.IGNORECASE)


class SizeClass(StrEnum):
    SMALL = "small"
    LARGE = "large"

    @classmethod
    def _missing_(cls, value: object) -> SizeClass | None:
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized in {"big", "large"}:
                return cls.LARGE
            if normalized == "small":
                return cls.SMALL
        return None


def size_class_from_bottle_type(bottle_type: str) -> SizeClass:
    """Map a bottle label such as ``"6kg"`` or ``"12kg"`` to a size class.

    Raises :class:`ValueError` for labels that are neither a weight nor a
    size class name.
    """
    match = _KG_PATTERN.match(bottle_type)
    if match is None:
        return SizeClass(bottle_type)
    kilograms = float(match.group(1).replace(",", "."))
    return SizeClass.SMALL if kilograms <= SMALL_BOTTLE_MAX_KG else SizeClass.LARGE


class Seller(AllogasBaseModel):
    """Immutable seller reference data.

    Catalog records may carry a nested ``coordinate`` or flat
    ``latitude``/``longitude`` keys, and either ``sizeClass`` or the
    original ``bottleType`` label.
    """

    id: str
    coordinate: Coordinate
    brand: str = ""
    size_class: SizeClass
    price: float | None = None
    rating: float | None = Field(default=None, ge=0, le=5)
    review_count: int = Field(default=0, ge=0)
    phone: str | None = None
    display_name: str = Field(
        default="",
        validation_alias=AliasChoices("displayName", "display_name", "shopName", "shop_name"),
    )

    @model_validator(mode="before")
    @classmethod
    def _normalise_record(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        merged = dict(values)
        if "coordinate" not in merged and "latitude" in merged and "longitude" in merged:
            merged["coordinate"] = {
                "latitude": merged.pop("latitude"),
                "longitude": merged.pop("longitude"),
            }
        bottle_type = merged.pop("bottleType", None) or merged.pop("bottle_type", None)
        if bottle_type and "sizeClass" not in merged and "size_class" not in merged:
            merged["size_class"] = size_class_from_bottle_type(str(bottle_type))
        for key in ("sizeClass", "size_class"):
            if isinstance(merged.get(key), str):
                merged[key] = SizeClass(merged[key])
        return merged

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        text = str(value).strip()
        if not text:
            raise ValueError("seller id must be non-empty")
        return text


class FilterCriteria(AllogasBaseModel):
    """Live filter applied before ranking.

    Empty criteria match every seller.
    """

    brand_substring: str = ""
    size_class: SizeClass | None = None

    @field_validator("size_class", mode="before")
    @classmethod
    def _coerce_size_class(cls, value: Any) -> Any:
        if isinstance(value, str):
            return SizeClass(value)
        return value

    def matches(self, seller: Seller) -> bool:
        needle = self.brand_substring.casefold()
        if needle and needle not in seller.brand.casefold():
            return False
        return self.size_class is None or seller.size_class == self.size_class


class RankedSeller(AllogasBaseModel):
    """A seller paired with its great-circle distance from the origin."""

    seller: Seller
    distance_km: float = Field(ge=0)

    @property
    def id(self) -> str:
        return self.seller.id
