"""Collaborator interfaces for the badge pipeline

The pipeline, the validity recorder and the badge service are handed
implementations of these explicitly. The SQLAlchemy-backed ones live in
`badgepress.core.data.repositories`.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass
class AssetMetadata:
    """What ingestion decided to pass to the asset store"""

    mime_type: str
    filename: str
    title: str = ""
    content: str = ""
    parent_record_id: int | None = None
    extra: dict = field(default_factory=dict)  # width, height, ...


class ContentStore(ABC):
    """Generic badge record persistence with key/value metadata"""

    @abstractmethod
    def create_record(self, title: str = "", criteria: str = "", status: str = "draft"):
        """Create a record and return it"""
        raise NotImplementedError("create_record method not implemented")

    @abstractmethod
    def get_record(self, record_id: int):
        """Return the record or None"""
        raise NotImplementedError("get_record method not implemented")

    @abstractmethod
    def list_records(self, status: str | None = None) -> list:
        """Records, optionally filtered by status"""
        raise NotImplementedError("list_records method not implemented")

    @abstractmethod
    def save_record(self, record):
        """Persist changes made to a record"""
        raise NotImplementedError("save_record method not implemented")

    @abstractmethod
    def get_meta(self, record_id: int, key: str) -> str | None:
        """Return the stored value for key, or None"""
        raise NotImplementedError("get_meta method not implemented")

    @abstractmethod
    def set_meta(self, record_id: int, key: str, value: str) -> None:
        """Insert or overwrite key"""
        raise NotImplementedError("set_meta method not implemented")

    @abstractmethod
    def delete_meta(self, record_id: int, key: str) -> bool:
        """Delete key; returns False when it did not exist"""
        raise NotImplementedError("delete_meta method not implemented")


class AssetStore(ABC):
    """Managed asset storage"""

    @abstractmethod
    def create_asset(self, source_path: str, metadata: AssetMetadata) -> int:
        """Copy source_path into managed storage and return the new asset id.

        Raises IngestionError when the store cannot accept the file.
        """
        raise NotImplementedError("create_asset method not implemented")

    @abstractmethod
    def get_asset_file(self, asset_id: int) -> str | None:
        """Backing file path of an asset, or None when it cannot be located"""
        raise NotImplementedError("get_asset_file method not implemented")

    @abstractmethod
    def set_record_image(self, record_id: int, asset_id: int) -> bool:
        """Point the record's image reference at asset_id"""
        raise NotImplementedError("set_record_image method not implemented")

    @abstractmethod
    def remove_record_image(self, record_id: int) -> bool:
        """Clear the record's image reference; False when there was none"""
        raise NotImplementedError("remove_record_image method not implemented")

    @abstractmethod
    def get_asset_url(self, asset_id: int) -> str | None:
        """Public URL of an asset, or None when it cannot be served"""
        raise NotImplementedError("get_asset_url method not implemented")
