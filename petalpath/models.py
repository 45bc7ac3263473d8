from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Union, Literal


class CamelModel(BaseModel):
    # AI replies and API responses use camelCase keys
    model_config = ConfigDict(populate_by_name=True)


class CareInstructions(CamelModel):
    watering: str = Field(min_length=1, description="How and how often to water")
    sunlight: str = Field(min_length=1, description="Light requirements")
    temperature: str = Field(min_length=1, description="Ideal temperature range in Celsius")


class WrappingTechnique(CamelModel):
    occasion: str
    description: str
    materials: List[str]
    style_notes: str = Field(alias="styleNotes")


class WeddingBouquet(CamelModel):
    style: str
    description: str
    stems: List[str]
    styling_tip: str = Field(alias="stylingTip")


class EasyOption(CamelModel):
    title: str
    effort_time: str = Field(alias="effortTime", description="E.g. '2 minutes'")
    vessel_type: str = Field(alias="vesselType", description="Household vessel, e.g. a jar or mug")
    guide: List[str]
    pro_tip: str = Field(alias="proTip")


class FlowerStylingResult(CamelModel):
    name: str = Field(min_length=1)
    botanical_name: Optional[str] = Field(None, alias="botanicalName")
    meaning: Optional[str] = None
    wrapping_techniques: List[WrappingTechnique] = Field(alias="wrappingTechniques", min_length=1)
    wedding_bouquet: Optional[WeddingBouquet] = Field(None, alias="weddingBouquet")
    easy_option: Optional[EasyOption] = Field(None, alias="easyOption")
    complementary_flowers: List[str] = Field(alias="complementaryFlowers")
    color_palette: List[str] = Field(alias="colorPalette")
    care_instructions: CareInstructions = Field(alias="careInstructions")


class SubscriptionWeek(CamelModel):
    week: int = Field(ge=1, description="1-based week number")
    theme: str
    main_flower: str = Field(alias="mainFlower", min_length=1)
    secondary_flowers: List[str] = Field(default_factory=list, alias="secondaryFlowers")
    vibe: str
    care_tip: str = Field(alias="careTip", min_length=1)


class SubscriptionPlan(CamelModel):
    title: str
    description: str
    weeks: List[SubscriptionWeek] = Field(min_length=4, max_length=4)


# Request input: either a typed flower name/description or a photo
class TextInput(BaseModel):
    kind: Literal["text"] = "text"
    text: str = Field(min_length=1)


class ImageInput(BaseModel):
    kind: Literal["image"] = "image"
    data: bytes
    mime_type: str


RequestInput = Union[TextInput, ImageInput]


# API responses

class IllustrationOut(CamelModel):
    key: str
    prompt: str
    status: str
    image_data_url: Optional[str] = Field(None, alias="imageDataUrl")


class SharePayload(CamelModel):
    title: str
    text: str
    copy_text: str = Field(alias="copyText")


class StylingResponse(CamelModel):
    request_id: str = Field(alias="requestId")
    result: FlowerStylingResult
    illustrations: List[IllustrationOut] = Field(default_factory=list)
    palette_svg: Optional[str] = Field(None, alias="paletteSvg")
    share: SharePayload


class SubscriptionResponse(CamelModel):
    request_id: str = Field(alias="requestId")
    plan: SubscriptionPlan
    illustrations: List[IllustrationOut] = Field(default_factory=list)
    share: SharePayload
    week_shares: List[SharePayload] = Field(default_factory=list, alias="weekShares")


class IllustrationResponse(CamelModel):
    prompt: str
    image_data_url: Optional[str] = Field(None, alias="imageDataUrl")
