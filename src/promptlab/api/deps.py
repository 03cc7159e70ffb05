"""Dependency injection for API handlers."""

from collections.abc import Callable
from typing import Annotated

import httpx
from fastapi import Depends, Request

from promptlab.config import PROVIDER_KEY_HEADER_PREFIX, Settings, get_settings
from promptlab.core.dispatcher import Dispatcher
from promptlab.core.providers import Provider, ProviderRegistry


def get_settings_dependency() -> Settings:
    """Get application settings.

    This is a thin wrapper around get_settings() to allow for
    easier testing via dependency override.
    """
    return get_settings()


SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]


def get_registry(settings: SettingsDep) -> ProviderRegistry:
    return settings.build_registry()


RegistryDep = Annotated[ProviderRegistry, Depends(get_registry)]


def get_credentials(request: Request, settings: SettingsDep) -> dict[Provider, str]:
    """Merge configured provider keys with keys supplied on the request.

    The browser session may send ``X-Provider-Key-<provider>`` headers; a
    non-empty header value takes precedence over the configured key.
    """
    credentials = settings.providers.credentials()
    for provider in Provider:
        key = request.headers.get(f"{PROVIDER_KEY_HEADER_PREFIX}{provider.value}", "").strip()
        if key:
            credentials[provider] = key
    return credentials


CredentialsDep = Annotated[dict[Provider, str], Depends(get_credentials)]


def get_local_context(request: Request, settings: SettingsDep) -> Callable[[], bool]:
    """Predicate telling whether the caller reached us under a local host name."""
    hostname = (request.url.hostname or "").lower()
    local_hosts = {host.lower() for host in settings.local_inference.local_hosts}
    return lambda: hostname in local_hosts


LocalContextDep = Annotated[Callable[[], bool], Depends(get_local_context)]


def get_http_client(request: Request) -> httpx.AsyncClient | None:
    """Shared outbound client created at startup, if the app lifespan ran."""
    return getattr(request.app.state, "http_client", None)


def get_dispatcher(
    credentials: CredentialsDep,
    is_local_context: LocalContextDep,
    registry: RegistryDep,
    client: Annotated[httpx.AsyncClient | None, Depends(get_http_client)],
) -> Dispatcher:
    return Dispatcher(
        credentials,
        is_local_context,
        client=client,
        registry=registry,
    )


DispatcherDep = Annotated[Dispatcher, Depends(get_dispatcher)]
