"""Translator configuration: inference order, metadata mode, default direction."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from llm_rosetta.core.infer import DEFAULT_INFER_PRIORITY
from llm_rosetta.core.metadata import MetadataMode
from llm_rosetta.errors import InvalidConfigError
from llm_rosetta.providers.provider import Direction, provider_tag


class TranslatorConfig(BaseModel):
    """Per-translator defaults.  Every value can be overridden per call.

    ``infer_priority`` lists provider tags in the order inference tries them;
    callers that need to disambiguate structurally overlapping formats supply
    their own order.
    """

    model_config = ConfigDict(frozen=True)

    infer_priority: tuple[str, ...] = tuple(provider_tag(p) for p in DEFAULT_INFER_PRIORITY)
    metadata_mode: MetadataMode = MetadataMode.STRIP
    direction: Direction = Direction.INPUT

    @field_validator("infer_priority", mode="before")
    @classmethod
    def _normalize_priority(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [value]
        if isinstance(value, (list, tuple)):
            value = tuple(provider_tag(item) for item in value)
            if not value:
                raise ValueError("infer_priority must name at least one provider")
        return value

    @classmethod
    def load(cls, data: TranslatorConfig | dict[str, Any] | None) -> TranslatorConfig:
        """Return *data* as a config, raising :class:`InvalidConfigError` on bad values."""
        if data is None:
            return cls()
        if isinstance(data, cls):
            return data
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise InvalidConfigError(str(exc)) from exc
