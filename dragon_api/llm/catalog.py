"""Static provider/model catalog and model reference resolution."""

import logging
from dataclasses import dataclass
from functools import lru_cache

from pydantic import BaseModel, Field, ValidationError

from dragon_api.config.settings import get_settings

logger = logging.getLogger(__name__)

MODEL_SEPARATOR = "/"


class ModelEntry(BaseModel):
    id: str
    name: str = ""
    default: bool = False


class ProviderEntry(BaseModel):
    id: str
    name: str = ""
    models: list[ModelEntry] = Field(default_factory=list)


class ProviderCatalog(BaseModel):
    providers: list[ProviderEntry] = Field(default_factory=list)


@dataclass(frozen=True)
class ResolvedModel:
    provider_id: str
    model_id: str

    @property
    def reference(self) -> str:
        return f"{self.provider_id}{MODEL_SEPARATOR}{self.model_id}"


def load_catalog(raw: str) -> ProviderCatalog:
    """Parse the JSON catalog; anything unparseable becomes an empty catalog."""
    if not raw:
        return ProviderCatalog()
    try:
        return ProviderCatalog.model_validate_json(raw)
    except ValidationError as exc:
        logger.error("Failed to parse AI_PROVIDERS_CONFIG: %s", exc)
        return ProviderCatalog()


@lru_cache()
def get_catalog() -> ProviderCatalog:
    return load_catalog(get_settings().AI_PROVIDERS_CONFIG)


def default_model(catalog: ProviderCatalog | None = None) -> ResolvedModel | None:
    catalog = catalog or get_catalog()
    for provider in catalog.providers:
        for model in provider.models:
            if model.default:
                return ResolvedModel(provider.id, model.id)

    # Fall back to the first model of the first provider
    if catalog.providers and catalog.providers[0].models:
        first = catalog.providers[0]
        return ResolvedModel(first.id, first.models[0].id)
    return None


def resolve_model(model: str | None, catalog: ProviderCatalog | None = None) -> ResolvedModel | None:
    """Resolve ``"provider/model"``, a bare model id, or nothing at all.

    Fully qualified references are not checked against the catalog; an unknown
    provider only fails once the upstream call is attempted.
    """
    catalog = catalog or get_catalog()
    if not model:
        return default_model(catalog)

    if MODEL_SEPARATOR in model:
        provider_id, model_id = model.split(MODEL_SEPARATOR, 1)
        return ResolvedModel(provider_id, model_id)

    for provider in catalog.providers:
        for entry in provider.models:
            if entry.id == model:
                return ResolvedModel(provider.id, entry.id)
    return None


def list_providers(catalog: ProviderCatalog | None = None) -> list[dict]:
    catalog = catalog or get_catalog()
    return [provider.model_dump() for provider in catalog.providers]
