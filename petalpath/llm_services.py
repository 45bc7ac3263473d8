# petalpath/llm_services.py

import copy
import json
import logging
from typing import Any, Callable, Dict, Optional, Type, TypeVar

from fastapi.concurrency import run_in_threadpool
from google.cloud import aiplatform
from google.oauth2 import service_account
from pydantic import BaseModel, ValidationError
from vertexai.preview.generative_models import GenerativeModel, Part, GenerationConfig
from vertexai.preview.vision_models import ImageGenerationModel

from .config import StylistSettings
from .errors import (
    IllustrationUnavailable,
    MalformedResponseError,
    NoResponseError,
    ServiceNotConfigured,
)
from .models import FlowerStylingResult, ImageInput, RequestInput, SubscriptionPlan
from .prompts import (
    build_styling_prompt,
    build_subscription_prompt,
    illustration_prompt,
    styling_system_instruction,
    subscription_system_instruction,
)
from .schemas import STYLING_RESPONSE_SCHEMA, SUBSCRIPTION_RESPONSE_SCHEMA

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


def strip_json_fences(text: str) -> str:
    """Remove a markdown ```json fence the model may wrap around its JSON."""
    if not text:
        return ""
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[len("```json"):]
    elif cleaned.startswith("```"):
        cleaned = cleaned[len("```"):]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-len("```")]
    return cleaned.strip()


def response_text(response: Any) -> str:
    candidates = getattr(response, "candidates", None)
    if not candidates or not candidates[0].content.parts:
        return ""
    return "".join(part.text for part in candidates[0].content.parts if hasattr(part, "text")).strip()


def backend_error_message(exc: Exception, model_name: str) -> str:
    message = str(exc)
    if "Publisher Model" in message or "is not supported" in message or "was not found" in message:
        return f"The model '{model_name}' could not be used. Check the model name and its availability in Google Cloud."
    return f"A technical error occurred with the AI stylist: {message[:150]}"


class StylistClient:
    """Structured styling/plan requests against Gemini and illustrations from Imagen."""

    def __init__(
        self,
        settings: StylistSettings,
        model_factory: Callable[..., Any] = GenerativeModel,
        image_model_loader: Callable[[str], Any] = ImageGenerationModel.from_pretrained,
        ready: bool = True,
    ):
        self.settings = settings
        self.ready = ready
        self._model_factory = model_factory
        self._image_model_loader = image_model_loader

    async def request_styling(self, request_input: RequestInput) -> FlowerStylingResult:
        prompt = build_styling_prompt(request_input)
        if isinstance(request_input, ImageInput):
            logger.info(f"Styling request from photo ({request_input.mime_type}, {len(request_input.data)} bytes).")
            image_part = Part.from_data(data=request_input.data, mime_type=request_input.mime_type)
            contents = [image_part, prompt]
        else:
            logger.info(f"Styling request for '{request_input.text[:80]}'.")
            contents = [prompt]

        return await self._generate_structured(
            styling_system_instruction(), contents, STYLING_RESPONSE_SCHEMA, FlowerStylingResult, "styling"
        )

    async def request_subscription_plan(self, vibe: str, preferred_flowers: Optional[str] = None) -> SubscriptionPlan:
        prompt = build_subscription_prompt(vibe, preferred_flowers)
        logger.info(f"Subscription plan request: {prompt[:120]}")
        return await self._generate_structured(
            subscription_system_instruction(), [prompt], SUBSCRIPTION_RESPONSE_SCHEMA, SubscriptionPlan, "subscription"
        )

    async def request_illustration(self, descriptive_prompt: str) -> Optional[bytes]:
        prompt = illustration_prompt(descriptive_prompt)
        try:
            if not self.ready:
                raise IllustrationUnavailable("Vertex AI is not initialised")

            model = self._image_model_loader(self.settings.image_model)
            response = await run_in_threadpool(
                model.generate_images,
                prompt=prompt,
                number_of_images=1,
                aspect_ratio=self.settings.illustration_aspect_ratio,
            )

            images = list(getattr(response, "images", None) or [])
            if not images:
                raise IllustrationUnavailable("the model returned no images")
            image_bytes = getattr(images[0], "_image_bytes", None)
            if not image_bytes:
                raise IllustrationUnavailable("the returned image carried no data")

            logger.info(f"Illustration generated ({len(image_bytes)} bytes) for '{descriptive_prompt[:60]}'.")
            return image_bytes

        except IllustrationUnavailable as e:
            logger.warning(f"Illustration skipped for '{descriptive_prompt[:60]}': {e}")
            return None
        except Exception as e:
            logger.warning(f"Illustration generation failed for '{descriptive_prompt[:60]}': {e}", exc_info=True)
            return None

    async def _generate_structured(
        self,
        system_instruction: str,
        contents: list,
        schema: Dict[str, Any],
        record_type: Type[RecordT],
        label: str,
    ) -> RecordT:
        if not self.ready:
            logger.error(f"{label}: Vertex AI is not initialised.")
            raise ServiceNotConfigured(f"{label} requested without a configured Vertex AI project")

        model = self._model_factory(self.settings.text_model, system_instruction=system_instruction)
        response = await model.generate_content_async(
            contents,
            generation_config=GenerationConfig(
                temperature=self.settings.temperature,
                max_output_tokens=self.settings.max_output_tokens,
                response_mime_type="application/json",
                response_schema=copy.deepcopy(schema),
            ),
        )

        text = response_text(response)
        if not text:
            logger.warning(f"{label}: the model returned no text: {response}")
            raise NoResponseError(f"No {label} response from the model")

        json_text = strip_json_fences(text)
        logger.debug(f"Raw {label} JSON from the model: {json_text}")

        try:
            data = json.loads(json_text)
        except json.JSONDecodeError as e:
            logger.error(f"{label}: could not decode JSON: {e}. Reply was: {json_text[:200]}")
            raise MalformedResponseError(f"{label} reply is not valid JSON: {e}") from e

        try:
            record = record_type.model_validate(data)
        except ValidationError as e:
            logger.error(f"{label}: reply failed validation: {e}. Reply was: {json_text[:200]}")
            raise MalformedResponseError(f"{label} reply is missing required fields: {e.error_count()} error(s)") from e

        logger.info(f"{label}: structured reply decoded.")
        return record


def create_stylist_client(settings: StylistSettings) -> StylistClient:
    if not settings.is_configured:
        return StylistClient(settings, ready=False)

    try:
        credentials = None
        if settings.credentials_file:
            credentials = service_account.Credentials.from_service_account_file(settings.credentials_file)
        aiplatform.init(project=settings.project_id, location=settings.location, credentials=credentials)
        logger.info(
            f"Vertex AI initialised for project '{settings.project_id}' in '{settings.location}'. "
            f"Text model: {settings.text_model}, image model: {settings.image_model}"
        )
        return StylistClient(settings)
    except Exception as e:
        logger.error(
            f"Could not initialise Vertex AI: {e} (project: {settings.project_id}, location: {settings.location})",
            exc_info=True,
        )
        return StylistClient(settings, ready=False)
