# app/core/generation/actions.py
import logging
from typing import Callable, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.characters import get_owned_character
from app.core.config import (
    ALLOWED_VIDEO_DURATIONS,
    ASPECT_RATIO_DIMENSIONS,
    DEFAULT_ASPECT_RATIO,
    DEFAULT_VARIATION_STRENGTH,
    DEFAULT_VIDEO_FPS,
    IMAGE_NEGATIVE_PROMPT,
    IMAGE_TO_IMAGE_MODEL,
    IMAGE_TO_IMAGE_MODEL_ID,
    IMAGE_TO_VIDEO_MODEL,
    TEXT_TO_IMAGE_MODEL,
)
from app.core.errors import (
    ErrorWithCode,
    credential_missing,
    generation_failed,
    invalid_aspect_ratio,
    invalid_duration,
    not_found,
    user_not_authenticated,
    validation_error,
)
from app.core.generation.outputs import BufferedOutput, read_output
from app.core.images import get_owned_image, save_generated_image
from app.core.prompts import build_prompt_for, enhance_variation_prompt
from app.core.storage import BlobStore
from app.core.videos import save_generated_video
from app.models.base import utcnow

logger = logging.getLogger(__name__)

# Builds a generation client (anything with run/fetch) from a plaintext key
ClientFactory = Callable[[str], object]


def resolve_aspect_ratio(aspect_ratio: Optional[str]) -> Tuple[str, int, int]:
    ratio = aspect_ratio or DEFAULT_ASPECT_RATIO
    if ratio not in ASPECT_RATIO_DIMENSIONS:
        raise invalid_aspect_ratio()
    width, height = ASPECT_RATIO_DIMENSIONS[ratio]
    return ratio, width, height


def validate_duration(duration) -> int:
    # bool is an int subclass, reject it explicitly
    if isinstance(duration, bool) or not isinstance(duration, (int, float)):
        raise invalid_duration()
    if duration not in ALLOWED_VIDEO_DURATIONS:
        raise invalid_duration()
    return int(duration)


def _require_prompt(prompt: Optional[str]) -> str:
    prompt = (prompt or "").strip()
    if not prompt:
        raise validation_error("Prompt is required")
    return prompt


def _build_client(api_key: Optional[str], client_factory: ClientFactory):
    if not api_key:
        raise credential_missing()
    return client_factory(api_key)


def _generate(client, model: str, input: dict, failure_message: str) -> BufferedOutput:
    """
    Run the model and buffer its output. Every upstream problem, including an
    empty or unrecognized result, becomes GENERATION_FAILED.
    """
    try:
        output = client.run(model, input)
        return read_output(output, client.fetch)
    except ErrorWithCode:
        raise
    except Exception:
        logger.exception("Generation with %s failed", model)
        raise generation_failed(failure_message)


def _persist(db: Session, blobs: BlobStore, buffered: BufferedOutput, default_content_type: str, write_record):
    """
    Store the blob and write its metadata in one commit. If the record
    cannot be written the blob file is removed again.
    """
    storage_id = blobs.store(db, buffered.data, buffered.content_type or default_content_type)
    try:
        record = write_record(storage_id)
        db.commit()
    except Exception:
        db.rollback()
        blobs.discard(storage_id)
        raise
    return record, storage_id


def generate_text_to_image(
    db: Session,
    blobs: BlobStore,
    client_factory: ClientFactory,
    user_id: Optional[str],
    api_key: Optional[str],
    character_id: str,
    prompt: str,
    aspect_ratio: Optional[str] = None,
    is_initial: bool = False,
) -> dict:
    """
    Generate an image of a character from text. An initial image also
    becomes the character's thumbnail.
    """
    if not user_id:
        raise user_not_authenticated()
    prompt = _require_prompt(prompt)
    ratio, width, height = resolve_aspect_ratio(aspect_ratio)

    character = get_owned_character(db, user_id, character_id)
    if not character:
        raise not_found("Character not found")

    client = _build_client(api_key, client_factory)
    full_prompt = build_prompt_for(character, prompt)

    input = {
        "prompt": full_prompt,
        "aspect_ratio": ratio,
        "image_size": "optimize_for_quality",
        "num_inference_steps": 35,
        "guidance": 3.5,
        "output_format": "webp",
        "output_quality": 80,
    }
    logger.info("Text-to-image for character %s (%s)", character.id, ratio)
    buffered = _generate(client, TEXT_TO_IMAGE_MODEL, input, "Failed to generate image")

    def write_record(storage_id: str):
        image = save_generated_image(
            db,
            character_id=character.id,
            storage_id=storage_id,
            user_prompt=prompt,
            full_prompt=full_prompt,
            generation_type="initial" if is_initial else "text-to-image",
            model_id=TEXT_TO_IMAGE_MODEL,
            width=width,
            height=height,
            aspect_ratio=ratio,
        )
        if is_initial:
            character.thumbnail_image_id = image.id
            character.updated_at = utcnow()
        return image

    image, storage_id = _persist(db, blobs, buffered, "image/webp", write_record)
    return {"id": image.id, "storage_id": storage_id, "url": blobs.get_url(storage_id)}


def generate_image_variation(
    db: Session,
    blobs: BlobStore,
    client_factory: ClientFactory,
    user_id: Optional[str],
    api_key: Optional[str],
    image_id: str,
    prompt: str,
    strength: Optional[float] = None,
) -> dict:
    """
    Image-to-image variation of an existing image, keeping its dimensions.
    """
    if not user_id:
        raise user_not_authenticated()
    prompt = _require_prompt(prompt)
    strength = DEFAULT_VARIATION_STRENGTH if strength is None else float(strength)
    if not 0.0 <= strength <= 1.0:
        raise validation_error("Strength must be between 0 and 1")

    source = get_owned_image(db, user_id, image_id)
    if not source:
        raise not_found("Image not found")

    client = _build_client(api_key, client_factory)
    enhanced_prompt = enhance_variation_prompt(build_prompt_for(source.character, prompt))

    input = {
        "prompt": enhanced_prompt,
        "negative_prompt": IMAGE_NEGATIVE_PROMPT,
        "image": blobs.get_url(source.storage_id),
        "width": source.width,
        "height": source.height,
        "strength": strength,
        "num_inference_steps": 28,
        "guidance_scale": 7,
        "scheduler": "K_EULER_ANCESTRAL",
        "num_outputs": 1,
    }
    logger.info("Image-to-image from %s (strength %.2f)", source.id, strength)
    buffered = _generate(client, IMAGE_TO_IMAGE_MODEL, input, "Failed to generate image")

    def write_record(storage_id: str):
        return save_generated_image(
            db,
            character_id=source.character_id,
            storage_id=storage_id,
            user_prompt=prompt,
            full_prompt=enhanced_prompt,
            generation_type="image-to-image",
            source_image_id=source.id,
            strength=strength,
            model_id=IMAGE_TO_IMAGE_MODEL_ID,
            width=source.width,
            height=source.height,
            aspect_ratio=source.aspect_ratio,
        )

    image, storage_id = _persist(db, blobs, buffered, "image/png", write_record)
    return {"id": image.id, "storage_id": storage_id, "url": blobs.get_url(storage_id)}


def generate_video(
    db: Session,
    blobs: BlobStore,
    client_factory: ClientFactory,
    user_id: Optional[str],
    api_key: Optional[str],
    image_id: str,
    prompt: str,
    duration,
) -> dict:
    """
    Animate an existing image. Duration must be one of ALLOWED_VIDEO_DURATIONS.
    """
    if not user_id:
        raise user_not_authenticated()
    duration = validate_duration(duration)
    prompt = _require_prompt(prompt)

    source = get_owned_image(db, user_id, image_id)
    if not source:
        raise not_found("Source image not found")

    client = _build_client(api_key, client_factory)

    input = {
        "prompt": prompt,
        "image": blobs.get_url(source.storage_id),
        "fps": DEFAULT_VIDEO_FPS,
        "duration": duration,
    }
    logger.info("Image-to-video from %s (%ds)", source.id, duration)
    buffered = _generate(client, IMAGE_TO_VIDEO_MODEL, input, "Failed to generate video")

    def write_record(storage_id: str):
        return save_generated_video(
            db,
            character_id=source.character_id,
            source_image_id=source.id,
            storage_id=storage_id,
            prompt=prompt,
            model_id=IMAGE_TO_VIDEO_MODEL,
            width=source.width,
            height=source.height,
            duration=duration,
            fps=DEFAULT_VIDEO_FPS,
        )

    video, storage_id = _persist(db, blobs, buffered, "video/mp4", write_record)
    return {"id": video.id, "storage_id": storage_id, "url": blobs.get_url(storage_id)}
