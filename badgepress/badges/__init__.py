"""Badge records: designer image ingestion and validity"""

from badgepress.badges.pipeline import DesignerPublishPipeline, PublishResult
from badgepress.badges.service import BadgeService, SaveOutcome
from badgepress.badges.validity import (
    ValidationWarning,
    ValidityRecorder,
    ValiditySnapshot,
    evaluate_validity,
)

__all__ = [
    "BadgeService",
    "DesignerPublishPipeline",
    "PublishResult",
    "SaveOutcome",
    "ValidationWarning",
    "ValidityRecorder",
    "ValiditySnapshot",
    "evaluate_validity",
]
