"""Badge ingestion and validation errors

Every failure that can end a designer publication carries a stable machine
code and the HTTP status it maps to. `ValidationWarning` is not an exception,
see `badgepress.badges.validity`.
"""


class BadgeError(Exception):
    """Base class for badge domain errors"""

    code = "badge_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Machine readable error payload"""
        return {"error": self.code, "message": self.message}


class PayloadError(BadgeError):
    """Missing or malformed inbound payload"""

    code = "payload_error"
    status_code = 400


class MalformedPayload(PayloadError):
    """String does not follow the data-URI grammar"""

    code = "malformed_payload"


class UnsupportedEncoding(BadgeError):
    """Data-URI encoding token has no registered handler"""

    code = "unsupported_encoding"
    status_code = 400


class DecodeError(BadgeError):
    """Payload is not valid under its declared encoding"""

    code = "decode_error"
    status_code = 400


class StagingError(BadgeError):
    """Temporary staging file could not be written or was reused"""

    code = "staging_error"
    status_code = 500


class IngestionError(BadgeError):
    """Asset store refused the staged file"""

    code = "ingestion_error"
    status_code = 422


class AttachmentError(BadgeError):
    """Asset was created but could not be set as the record image"""

    code = "attachment_error"
    status_code = 500

    def __init__(self, message: str, asset_id: int | None = None):
        super().__init__(message)
        self.asset_id = asset_id

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["asset_id"] = self.asset_id
        return data


class RecordNotFound(BadgeError):
    """No badge record with the given id"""

    code = "record_not_found"
    status_code = 404
