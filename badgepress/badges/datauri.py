"""Data-URI decoding

Grammar handled here (and nothing more): ``data:<media-type>;<encoding>,<payload>``.
The header is split on its first ``;`` and the payload starts after the first
``,`` found at or after the scheme prefix. Whether the bytes really are an
image of the declared type is decided later, during ingestion.
"""

import base64
import binascii
import logging
from typing import Callable

from badgepress.badges.errors import DecodeError, MalformedPayload, UnsupportedEncoding

logger = logging.getLogger(__name__)

DATA_URI_SCHEME = "data:"

EncodingHandler = Callable[[str], bytes]

# Registry of payload encodings
_ENCODING_REGISTRY: dict[str, EncodingHandler] = {}


def register_encoding(name: str, registry: dict[str, EncodingHandler] | None = None):
    """
    Decorator to register a payload decoder for an encoding token.

    Usage:
    @register_encoding("base64")
    def decode_base64(payload: str) -> bytes:
        ...
    """
    target = _ENCODING_REGISTRY if registry is None else registry

    def decorator(func: EncodingHandler) -> EncodingHandler:
        if name in target:
            logger.warning("Overwriting encoding registration: %s", name)
        target[name] = func
        logger.debug("Registered encoding: %s -> %s", name, func.__name__)
        return func

    return decorator


def default_encodings() -> dict[str, EncodingHandler]:
    """Copy of the built-in encoding registry"""
    return dict(_ENCODING_REGISTRY)


@register_encoding("base64")
def decode_base64(payload: str) -> bytes:
    """Strict base64: bad alphabet or padding is an error, not silently dropped"""
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(
            "Error decoding the badge designer image data: bad base64 data."
        ) from e


def has_data_uri_scheme(value) -> bool:
    """True when value is a string starting with the data-URI scheme"""
    return isinstance(value, str) and value.startswith(DATA_URI_SCHEME)


def decode_data_uri(
    value: str, encodings: dict[str, EncodingHandler] | None = None
) -> tuple[bytes, str]:
    """Decode an inline data URI.

    Args:
        value: The string claimed to be a data URI
        encodings: Encoding registry, defaults to the built-in one (base64)

    Returns:
        (raw bytes, declared media type)

    Raises:
        MalformedPayload: no scheme, no separator, or an empty header
        UnsupportedEncoding: the encoding token is not registered
        DecodeError: the payload does not decode
    """
    if encodings is None:
        encodings = _ENCODING_REGISTRY

    if not has_data_uri_scheme(value):
        raise MalformedPayload("Error decoding the badge designer image data.")

    start = len(DATA_URI_SCHEME)
    pos = value.find(",", start)
    if pos <= start:
        # no separator at all, or an empty header
        raise MalformedPayload("Error decoding the badge designer image data.")

    header = value[start:pos]
    payload = value[pos + 1 :]
    media_type, _, encoding = header.partition(";")

    handler = encodings.get(encoding)
    if handler is None:
        logger.warning("Unsupported data URI encoding: %r", encoding)
        raise UnsupportedEncoding(
            "Error decoding the badge designer image data: unknown encoding."
        )

    data = handler(payload)
    logger.debug(
        "Decoded data URI: media_type=%s encoding=%s bytes=%d",
        media_type,
        encoding,
        len(data),
    )
    return data, media_type
