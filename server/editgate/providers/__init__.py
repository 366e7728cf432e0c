from editgate.providers.protocol import GenerationProvider, ProviderError
from editgate.providers.replicate import ReplicateProvider

__all__ = ["GenerationProvider", "ProviderError", "ReplicateProvider"]
