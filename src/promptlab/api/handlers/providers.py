"""Provider and model listing endpoint handlers."""

import logging

from fastapi import APIRouter

from promptlab.api.deps import CredentialsDep, DispatcherDep, LocalContextDep, SettingsDep
from promptlab.config import Settings
from promptlab.core.dispatcher import Dispatcher
from promptlab.core.providers import Provider
from promptlab.models.conversation import ModelConfig
from promptlab.models.response import ProviderInfo, ProviderModelsResponse, ProvidersResponse

logger = logging.getLogger(__name__)

router = APIRouter()


async def resolve_models(
    provider: Provider,
    dispatcher: Dispatcher,
    settings: Settings,
) -> list[str]:
    """Models offered for a provider.

    Ollama models come from the running server; OpenRouter's built-in list is
    extended with the configured custom model ids.
    """
    registry = dispatcher.registry

    if provider == Provider.OLLAMA:
        return await dispatcher.fetch_local_models()

    if provider == Provider.OPENROUTER:
        return registry.combined_models(provider, settings.providers.openrouter.custom_models)

    return registry.get_available_models(provider)


@router.get("/providers", response_model=ProvidersResponse)
async def list_providers(
    settings: SettingsDep,
    dispatcher: DispatcherDep,
    credentials: CredentialsDep,
    is_local_context: LocalContextDep,
) -> ProvidersResponse:
    """List supported providers with their availability and models."""
    registry = dispatcher.registry
    providers = []

    for provider in Provider:
        providers.append(
            ProviderInfo(
                id=provider,
                name=registry.display_name(provider),
                requiresCredential=registry.requires_credential(provider),
                available=registry.is_available(provider, credentials, is_local_context),
                models=await resolve_models(provider, dispatcher, settings),
            )
        )

    logger.debug(f"Returning {len(providers)} providers")

    defaults = ModelConfig(**settings.defaults.model_dump())

    return ProvidersResponse(providers=providers, defaults=defaults)


@router.get("/providers/{provider}/models", response_model=ProviderModelsResponse)
async def list_provider_models(
    provider: Provider,
    settings: SettingsDep,
    dispatcher: DispatcherDep,
) -> ProviderModelsResponse:
    """List the models offered for one provider."""
    models = await resolve_models(provider, dispatcher, settings)

    logger.debug(f"Returning {len(models)} models for {provider.value}")

    return ProviderModelsResponse(provider=provider, models=models)
