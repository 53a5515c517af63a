from labelcheck.client.base import BaseServiceClient
from labelcheck.client.example_client_adapter import ExampleServiceClient
from labelcheck.client.http_client_adapter import HttpServiceClient
from labelcheck.config.settings import Settings


class ServiceClientFactory:
    """Creates the configured service client adapter."""

    PROVIDERS = ("http", "example")

    @classmethod
    def create(cls, settings: Settings) -> BaseServiceClient:
        provider = settings.service_provider.lower()
        if provider == "example":
            return ExampleServiceClient()
        if provider == "http":
            base_url = settings.service_base_url.strip()
            if not base_url:
                raise ValueError("service_base_url is required for service_provider=http")
            return HttpServiceClient(
                base_url=base_url,
                timeout_seconds=settings.service_timeout_seconds,
                health_path=settings.health_path,
            )
        raise ValueError(
            f"Unknown service provider '{provider}'. Choose from: {list(cls.PROVIDERS)}"
        )
