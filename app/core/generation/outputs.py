# app/core/generation/outputs.py
"""
Shapes a generation provider can hand back, and how each one is buffered
into a single in-memory byte string.

A prediction output is parsed once into one of the variants below. Anything
that does not match a known shape is rejected at parse time instead of being
sniffed again at every call site.
"""
import base64
import binascii
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Union


class UnrecognizedOutput(ValueError):
    pass


class EmptyOutput(ValueError):
    pass


@dataclass
class StreamOutput:
    chunks: Iterable[bytes]
    content_type: Optional[str] = None


@dataclass
class UrlOutput:
    url: str


@dataclass
class FileListOutput:
    files: List["GenerationOutput"] = field(default_factory=list)


GenerationOutput = Union[StreamOutput, UrlOutput, FileListOutput]

# Opens a URL and returns its body as a stream
Fetcher = Callable[[str], StreamOutput]


@dataclass
class BufferedOutput:
    data: bytes
    content_type: Optional[str] = None


def _parse_data_uri(uri: str) -> StreamOutput:
    header, _, payload = uri.partition(",")
    if not header.endswith(";base64"):
        raise UnrecognizedOutput("Only base64 data URIs are supported")
    content_type = header[len("data:"):-len(";base64")] or None
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise UnrecognizedOutput(f"Malformed data URI: {e}")
    return StreamOutput(chunks=[data], content_type=content_type)


def parse_output(raw) -> GenerationOutput:
    """
    Classify a raw prediction output.

    - bytes                      -> StreamOutput
    - "data:<type>;base64,..."   -> StreamOutput
    - "http(s)://..."            -> UrlOutput
    - {"url": ...}               -> UrlOutput
    - list                       -> FileListOutput of parsed items
    """
    if raw is None:
        raise EmptyOutput("Prediction returned no output")
    if isinstance(raw, (bytes, bytearray)):
        return StreamOutput(chunks=[bytes(raw)])
    if isinstance(raw, str):
        if raw.startswith("data:"):
            return _parse_data_uri(raw)
        if raw.startswith(("http://", "https://")):
            return UrlOutput(url=raw)
        raise UnrecognizedOutput("String output is neither a URL nor a data URI")
    if isinstance(raw, dict) and isinstance(raw.get("url"), str):
        return UrlOutput(url=raw["url"])
    if isinstance(raw, (list, tuple)):
        if not raw:
            raise EmptyOutput("Prediction returned an empty file list")
        return FileListOutput(files=[parse_output(item) for item in raw])
    raise UnrecognizedOutput(f"Unrecognized output type: {type(raw).__name__}")


def read_stream(output: StreamOutput) -> BufferedOutput:
    data = b"".join(chunk for chunk in output.chunks if chunk)
    return BufferedOutput(data=data, content_type=output.content_type)


def read_url(output: UrlOutput, fetch: Fetcher) -> BufferedOutput:
    return read_stream(fetch(output.url))


def read_file_list(output: FileListOutput, fetch: Fetcher) -> BufferedOutput:
    # Single-output models: only the first file matters
    if not output.files:
        raise EmptyOutput("Prediction returned an empty file list")
    return read_output(output.files[0], fetch)


def read_output(output: GenerationOutput, fetch: Fetcher) -> BufferedOutput:
    """
    Buffer any parsed output fully into memory. Raises EmptyOutput when the
    result holds no bytes.
    """
    if isinstance(output, StreamOutput):
        buffered = read_stream(output)
    elif isinstance(output, UrlOutput):
        buffered = read_url(output, fetch)
    elif isinstance(output, FileListOutput):
        buffered = read_file_list(output, fetch)
    else:
        raise UnrecognizedOutput(f"Unrecognized output type: {type(output).__name__}")

    if not buffered.data:
        raise EmptyOutput("Prediction output is empty")
    return buffered
