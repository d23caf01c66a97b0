"""Asset ingestion

Turns a staged file into a managed asset and optionally attaches it to a
badge record. Media types are decided by looking at the bytes with Pillow and
checking the result against an explicit allow-list; the declared media type
and the file extension alone are never trusted.
"""

import logging
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from PIL import Image, UnidentifiedImageError
from slugify import slugify

from badgepress.badges.errors import AttachmentError, BadgeError, IngestionError
from badgepress.badges.staging import StagedFile
from badgepress.badges.stores import AssetMetadata, AssetStore
from badgepress.core.utils import is_numeric, strip_tags

logger = logging.getLogger(__name__)

PNG_ONLY: Mapping[str, str] = MappingProxyType({"png": "image/png"})


@dataclass(frozen=True)
class IngestionOptions:
    """Explicit ingestion overrides

    Attributes:
        allowed_types: extension -> media type allow-list (PNG only by default)
        title: asset title; None derives it from the labels or the image
        content: asset body text; None uses the image caption, if any
        allow_empty: accept zero-byte files
    """

    allowed_types: Mapping[str, str] = field(default_factory=lambda: PNG_ONLY)
    title: str | None = None
    content: str | None = None
    allow_empty: bool = False


@dataclass(frozen=True)
class BadgeLabels:
    """Text lines of a designed badge, used to name its image"""

    primary: str = ""
    secondary: str = ""
    secondary2: str = ""


@dataclass(frozen=True)
class ImageInfo:
    """What Pillow could tell about a file"""

    format: str | None = None
    mime_type: str | None = None
    width: int | None = None
    height: int | None = None
    title: str = ""
    caption: str = ""


@dataclass(frozen=True)
class IngestionResult:
    asset_id: int
    attached: bool


def sanitize_title(value: str | None) -> str:
    """URL-safe slug of a label"""
    if not value:
        return ""
    return slugify(strip_tags(value))


def derive_title(labels: BadgeLabels | None) -> str:
    """Name an image after its badge text.

    The primary label wins; if it is empty or only a number the two secondary
    lines are joined instead; a numeric result there gives an empty title.
    """
    if labels is None:
        return ""
    title = sanitize_title(labels.primary)
    if not title or is_numeric(title):
        title = sanitize_title(f"{labels.secondary} {labels.secondary2}")
        if is_numeric(title):
            title = ""
    return title


def inspect_image(path: str) -> ImageInfo:
    """Sniff the real image type and read the PNG text chunks.

    Only the header and the chunks before the pixel data are read.

    Raises:
        IngestionError: the header declares more pixels than Pillow allows
    """
    try:
        with Image.open(path) as img:
            limit = Image.MAX_IMAGE_PIXELS
            if limit and img.width * img.height > limit:
                raise Image.DecompressionBombError(
                    f"{img.width}x{img.height} exceeds {limit} pixels"
                )
            info = img.info
            return ImageInfo(
                format=img.format,
                mime_type=Image.MIME.get(img.format) if img.format else None,
                width=img.width,
                height=img.height,
                title=str(info.get("Title") or "").strip(),
                caption=str(info.get("Description") or info.get("Comment") or "").strip(),
            )
    except Image.DecompressionBombError as e:
        logger.warning("Rejected oversized image %s: %s", path, e)
        raise IngestionError("Sorry, this image is too large.") from e
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        logger.debug("Could not identify image %s: %s", path, e)
        return ImageInfo()


def check_allowed_type(
    filename: str, info: ImageInfo, allowed_types: Mapping[str, str]
) -> str:
    """Return the accepted media type or raise IngestionError"""
    ext = os.path.splitext(filename)[1].lstrip(".").lower()
    allowed = allowed_types.get(ext)
    if not allowed or info.mime_type != allowed:
        logger.warning(
            "Rejected upload %s: extension=%r sniffed=%r", filename, ext, info.mime_type
        )
        raise IngestionError("Sorry, this file type is not permitted for security reasons.")
    return allowed


class AssetIngestor:
    """Creates assets from staged files and attaches them to records"""

    def __init__(self, asset_store: AssetStore):
        self.asset_store = asset_store

    def _choose_title(
        self,
        filename: str,
        info: ImageInfo,
        labels: BadgeLabels | None,
        options: IngestionOptions,
    ) -> str:
        if options.title is not None:
            return options.title
        if labels is not None:
            return derive_title(labels)
        if info.title and not is_numeric(sanitize_title(info.title)):
            return info.title
        return os.path.splitext(filename)[0].strip()

    def ingest(
        self,
        staged_file: StagedFile,
        record_id: int | None = None,
        labels: BadgeLabels | None = None,
        options: IngestionOptions | None = None,
    ) -> IngestionResult:
        """Ingest a staged file.

        Raises:
            IngestionError: the file is refused or the asset store fails
            AttachmentError: the asset exists but the record image was not set
        """
        options = options or IngestionOptions()
        path = staged_file.claim()

        if not options.allow_empty and os.path.getsize(path) <= 0:
            raise IngestionError("File is empty. Please upload something more substantial.")

        info = inspect_image(path)
        mime_type = check_allowed_type(staged_file.name, info, options.allowed_types)

        metadata = AssetMetadata(
            mime_type=mime_type,
            filename=staged_file.name,
            title=self._choose_title(staged_file.name, info, labels, options),
            content=options.content if options.content is not None else info.caption,
            parent_record_id=record_id,
            extra={"width": info.width, "height": info.height},
        )

        try:
            asset_id = self.asset_store.create_asset(path, metadata)
        except BadgeError:
            raise
        except OSError as e:
            logger.error("Asset store failed for %s: %s", staged_file.name, e)
            raise IngestionError(str(e) or "The asset store rejected the file.") from e

        logger.info("Ingested %s as asset %s (title=%r)", staged_file.name, asset_id, metadata.title)

        if record_id is None:
            return IngestionResult(asset_id=asset_id, attached=False)

        try:
            attached = self.asset_store.set_record_image(record_id, asset_id)
        except Exception as e:
            logger.error("Attaching asset %s to badge %s failed: %s", asset_id, record_id, e)
            raise AttachmentError(
                "Unable to set the badge as the featured image.", asset_id=asset_id
            ) from e
        if not attached:
            logger.error("Attaching asset %s to badge %s was refused", asset_id, record_id)
            raise AttachmentError(
                "Unable to set the badge as the featured image.", asset_id=asset_id
            )

        return IngestionResult(asset_id=asset_id, attached=True)
