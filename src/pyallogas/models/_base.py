"""Base model for pyallogas records.

Every record model inherits from :class:`AllogasBaseModel` which
provides:

* ``alias_generator=to_camel`` so camelCase catalog/provider keys map
  automatically to snake_case fields.
* ``frozen=True``: records are immutable once produced and hashable,
  which the ranker relies on to memoise its last inputs.
* A ``model_validator(mode="before")`` that drops ``None`` and blank
  strings so the field default is used.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class AllogasBaseModel(BaseModel):
    """Base for immutable pyallogas records."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_blank_values(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and not value.strip():
                continue
            cleaned[key] = value
        return cleaned
