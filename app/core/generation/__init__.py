from .actions import generate_text_to_image, generate_image_variation, generate_video
from .client import ReplicateClient, GenerationError, get_client_factory

__all__ = [
    "generate_text_to_image",
    "generate_image_variation",
    "generate_video",
    "ReplicateClient",
    "GenerationError",
    "get_client_factory",
]
