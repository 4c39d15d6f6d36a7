# app/core/config.py
import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./character_studio.db")

# Blobs (generated images/videos) are written here, one file per storage id
STORAGE_DIRECTORY = os.getenv("STORAGE_DIRECTORY", "uploads/blobs")

# Must be reachable by the generation provider, it fetches source images from it
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/")

# Symmetric secret used to encrypt per-user API keys at rest.
# Rotating it makes every stored key read back as "not configured".
API_KEY_ENCRYPTION_SECRET = os.getenv(
    "API_KEY_ENCRYPTION_SECRET", "dev-only-secret-change-me"
)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

CORS_ALLOW_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")
    if origin.strip()
]

# Generation provider (Replicate)
REPLICATE_API_BASE_URL = os.getenv(
    "REPLICATE_API_BASE_URL", "https://api.replicate.com/v1"
).rstrip("/")
GENERATION_TIMEOUT_SECONDS = float(os.getenv("GENERATION_TIMEOUT_SECONDS", "300"))
GENERATION_POLL_INTERVAL_SECONDS = float(os.getenv("GENERATION_POLL_INTERVAL_SECONDS", "2"))
DOWNLOAD_CHUNK_SIZE = 64 * 1024

API_KEY_PREFIXES = ("r8_", "r_")

TEXT_TO_IMAGE_MODEL = "qwen/qwen-image"
IMAGE_TO_IMAGE_MODEL = (
    "asiryan/mistoon-anime-xl:"
    "06285a5017bb6bdc7314b3914c48896ffbe543ab8fa1ffc114f8894deac22c9d"
)
IMAGE_TO_IMAGE_MODEL_ID = "mistoon-anime-xl"
IMAGE_TO_VIDEO_MODEL = "bytedance/seedance-1-pro"

DEFAULT_ASPECT_RATIO = "1:1"
ASPECT_RATIO_DIMENSIONS = {
    "16:9": (1344, 768),
    "1:1": (1024, 1024),
    "9:16": (768, 1344),
}

DEFAULT_VARIATION_STRENGTH = 0.7

ALLOWED_VIDEO_DURATIONS = (5, 10)
DEFAULT_VIDEO_FPS = 24

IMAGE_QUALITY_TAGS = "score_9, score_8_up, score_7_up"
IMAGE_NEGATIVE_PROMPT = (
    "score_6, score_5, score_4, multiple, lowres, text, error, missing arms, "
    "missing legs, missing fingers, extra digit, fewer digits, cropped, "
    "worst quality, low quality, jpeg artifacts, signature, watermark, "
    "out of frame, extra fingers, mutated hands, (poorly drawn hands), "
    "(poorly drawn face), (mutation), (deformed breasts), (ugly), blurry, "
    "(bad anatomy), (bad proportions), (extra limbs), cloned face, flat color, "
    "monochrome, limited palette"
)
