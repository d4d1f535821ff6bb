"""Language model access: Vertex AI REST client and the completion gateway."""

from .client import VertexRestClient
from .gateway import CompletionGateway, create_gateway, strip_code_fences

__all__ = ["VertexRestClient", "CompletionGateway", "create_gateway", "strip_code_fences"]
