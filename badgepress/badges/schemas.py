"""Badge request/response schemas"""

import json

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from badgepress.badges.ingestion import BadgeLabels


class DesignerLabel(BaseModel):
    """One text element of a designed badge"""

    model_config = ConfigDict(extra="ignore")

    value: str = ""
    value2: str = ""

    @field_validator("value", "value2", mode="before")
    @classmethod
    def coerce_text(cls, v):
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)


class DesignerPayload(BaseModel):
    """Message posted back by the badge designer.

    The designer names its labels `badgeText` and `text`.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    image: str | None = None
    primary_label: DesignerLabel | None = Field(
        default=None, validation_alias=AliasChoices("badgeText", "primaryLabel")
    )
    secondary_label: DesignerLabel | None = Field(
        default=None, validation_alias=AliasChoices("text", "secondaryLabel")
    )

    @field_validator("image", mode="before")
    @classmethod
    def image_must_be_text(cls, v):
        # non-string images fail the scheme check later, with the right error
        return v if v is None or isinstance(v, str) else ""

    def labels(self) -> BadgeLabels:
        primary = self.primary_label or DesignerLabel()
        secondary = self.secondary_label or DesignerLabel()
        return BadgeLabels(
            primary=primary.value,
            secondary=secondary.value,
            secondary2=secondary.value2,
        )


class DesignerPublishRequest(BaseModel):
    """Publish request: the designer message, its target and the nonce"""

    record_id: int | None = Field(
        default=None, validation_alias=AliasChoices("record_id", "post_id")
    )
    nonce: str = ""
    badge: str | dict | None = None

    def badge_data(self) -> dict | None:
        """The designer message as a dict, or None when it cannot be read"""
        if isinstance(self.badge, dict):
            return self.badge
        if not self.badge:
            return None
        try:
            data = json.loads(self.badge)
        except (json.JSONDecodeError, TypeError):
            return None
        return data if isinstance(data, dict) else None


class BadgeCreateRequest(BaseModel):
    """New badge record"""

    title: str = ""
    criteria: str = ""
    description: str | None = None
    version: str | None = None


class BadgeUpdateRequest(BaseModel):
    """Badge save; omitted fields are left alone"""

    title: str | None = None
    criteria: str | None = None
    status: str | None = None
    description: str | None = None
    version: str | None = None


class ValidityResponse(BaseModel):
    has_image: bool
    image_is_png: bool
    has_description: bool
    description_length_ok: bool
    has_criteria: bool
    is_published: bool
    overall: bool


class WarningResponse(BaseModel):
    facet: str
    message: str


class BadgeDetailResponse(BaseModel):
    """Badge record as shown in the editor"""

    id: int
    title: str
    display_title: str
    status: str
    criteria: str
    description: str
    version: str | None
    image_asset_id: int | None
    image_url: str | None
    validity: ValidityResponse | None
    warnings: list[WarningResponse]


class BadgeListItem(BaseModel):
    """Badge row in the listing"""

    id: int
    title: str
    status: str
    version: str | None
    invalid: bool
    states: list[str]


class DesignerLaunchResponse(BaseModel):
    """What the editor needs to open the designer"""

    record_id: int
    has_image: bool
    designer_url: str | None
    designer_origin: str
    nonce: str | None
