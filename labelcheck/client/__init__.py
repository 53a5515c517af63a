from labelcheck.client.base import BaseServiceClient
from labelcheck.client.factory import ServiceClientFactory
from labelcheck.client.outcome import ServiceGateway, ServiceOutcome

__all__ = ["BaseServiceClient", "ServiceClientFactory", "ServiceGateway", "ServiceOutcome"]
