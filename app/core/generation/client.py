# app/core/generation/client.py
import logging
import time
from typing import Iterator, Optional

import requests

from app.core.config import (
    DOWNLOAD_CHUNK_SIZE,
    GENERATION_POLL_INTERVAL_SECONDS,
    GENERATION_TIMEOUT_SECONDS,
    REPLICATE_API_BASE_URL,
)
from app.core.generation.outputs import GenerationOutput, StreamOutput, parse_output

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = ("succeeded", "failed", "canceled")


class GenerationError(Exception):
    """Upstream call failed; the message is for logs, not for clients."""


class ReplicateClient:
    """
    Minimal Replicate HTTP client.

    One instance per API key. `run` creates a prediction, waits for it to
    finish and returns its parsed output; `fetch` streams a file output.
    """

    def __init__(
        self,
        api_token: str,
        base_url: str = REPLICATE_API_BASE_URL,
        timeout: float = GENERATION_TIMEOUT_SECONDS,
        poll_interval: float = GENERATION_POLL_INTERVAL_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
        })

    def _create_prediction(self, model: str, input: dict) -> dict:
        # "owner/name:version" pins a version, "owner/name" runs the latest
        if ":" in model:
            _, version = model.split(":", 1)
            url = f"{self.base_url}/predictions"
            payload = {"version": version, "input": input}
        else:
            url = f"{self.base_url}/models/{model}/predictions"
            payload = {"input": input}

        r = self.session.post(url, json=payload, headers={"Prefer": "wait"}, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def _wait(self, prediction: dict) -> dict:
        deadline = time.monotonic() + self.timeout
        while prediction.get("status") not in TERMINAL_STATUSES:
            if time.monotonic() >= deadline:
                raise GenerationError(f"Prediction {prediction.get('id')} timed out")
            poll_url = (prediction.get("urls") or {}).get("get")
            if not poll_url:
                raise GenerationError("Prediction has no polling URL")
            time.sleep(self.poll_interval)
            r = self.session.get(poll_url, timeout=self.timeout)
            r.raise_for_status()
            prediction = r.json()
        return prediction

    def run(self, model: str, input: dict) -> GenerationOutput:
        logger.info("Running %s", model)
        prediction = self._wait(self._create_prediction(model, input))
        if prediction.get("status") != "succeeded":
            raise GenerationError(
                f"Prediction {prediction.get('id')} {prediction.get('status')}: {prediction.get('error')}"
            )
        return parse_output(prediction.get("output"))

    def fetch(self, url: str) -> StreamOutput:
        # Output files live on a CDN; the API token must not go there
        r = self.session.get(url, headers={"Authorization": None}, stream=True, timeout=self.timeout)
        r.raise_for_status()
        content_type = r.headers.get("Content-Type")
        if content_type:
            content_type = content_type.split(";", 1)[0].strip() or None
        return StreamOutput(chunks=_iter_body(r), content_type=content_type)


def _iter_body(response: requests.Response) -> Iterator[bytes]:
    try:
        for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
            yield chunk
    finally:
        response.close()


def get_client_factory():
    """
    FastAPI dependency: callable building a client from a plaintext API key.
    Tests override it with a fake.
    """
    return ReplicateClient
