import asyncio
import json

import pytest

from petalpath.errors import MalformedResponseError, NoResponseError, ServiceNotConfigured
from petalpath.llm_services import StylistClient, strip_json_fences
from petalpath.models import ImageInput, TextInput
from petalpath.prompts import ILLUSTRATION_PREAMBLE
from tests.fakes import (
    EMPTY_RESPONSE,
    SUBSCRIPTION_PLAN,
    FakeImageModel,
    json_response,
    make_client,
    make_settings,
    styling_payload,
    text_response,
)


def test_strip_json_fences_returns_inner_json():
    inner = '{"name": "Peony", "colorPalette": ["#F4C2C2"]}'
    assert strip_json_fences(f"```json\n{inner}\n```") == inner
    assert strip_json_fences(f"```\n{inner}\n```") == inner


def test_strip_json_fences_is_idempotent():
    inner = '{"name": "Tulip"}'
    once = strip_json_fences(f"```json\n{inner}\n```")
    assert strip_json_fences(once) == once
    assert strip_json_fences(inner) == inner
    assert strip_json_fences("") == ""


def test_styling_by_name_decodes_full_result():
    client = make_client(json_response(styling_payload()))

    result = asyncio.run(client.request_styling(TextInput(text="Peony")))

    assert result.name == "Peony"
    assert len(result.wrapping_techniques) == 3
    assert result.care_instructions.temperature == "16-21°C"
    assert result.wedding_bouquet.styling_tip.startswith("Wrap")
    assert result.easy_option.vessel_type == "Jam jar"

    call = client._model_factory.calls[0]
    assert call["model_name"] == "gemini-2.5-flash"
    assert "strictly in Celsius" in call["system_instruction"]
    assert call["contents"] == ["Flower(s) to analyze: Peony"]
    assert call["generation_config"] is not None


def test_styling_accepts_fenced_reply():
    client = make_client(json_response(styling_payload("Garden Peony"), fenced=True))

    result = asyncio.run(client.request_styling(TextInput(text="Peony")))

    assert "peony" in result.name.lower()


def test_styling_without_optional_sections_is_valid():
    payload = styling_payload()
    del payload["weddingBouquet"], payload["easyOption"], payload["botanicalName"]
    client = make_client(json_response(payload))

    result = asyncio.run(client.request_styling(TextInput(text="Peony")))

    assert result.wedding_bouquet is None
    assert result.easy_option is None


def test_styling_from_photo_sends_image_part_unmodified():
    photo = b"\xff\xd8\xff\xe0 arbitrary jpeg bytes"
    client = make_client(json_response(styling_payload()))

    asyncio.run(client.request_styling(ImageInput(data=photo, mime_type="image/jpeg")))

    image_part, prompt = client._model_factory.calls[0]["contents"]
    assert image_part.inline_data.data == photo
    assert image_part.inline_data.mime_type == "image/jpeg"
    assert "in this image" in prompt
    assert "Flower(s) to analyze" not in prompt


def test_no_text_payload_raises_no_response_error():
    client = make_client(EMPTY_RESPONSE)

    with pytest.raises(NoResponseError):
        asyncio.run(client.request_styling(TextInput(text="Peony")))


def test_blank_text_payload_raises_no_response_error():
    client = make_client(text_response("   "))

    with pytest.raises(NoResponseError):
        asyncio.run(client.request_styling(TextInput(text="Peony")))


def test_invalid_json_raises_malformed_response_error():
    client = make_client(text_response("Here are some lovely peony ideas!"))

    with pytest.raises(MalformedResponseError):
        asyncio.run(client.request_styling(TextInput(text="Peony")))


@pytest.mark.parametrize("mutate", [
    lambda p: p.pop("careInstructions"),
    lambda p: p["careInstructions"].pop("temperature"),
    lambda p: p["careInstructions"].update(watering=""),
    lambda p: p.update(wrappingTechniques=[]),
    lambda p: p["wrappingTechniques"][0].pop("styleNotes"),
    lambda p: p.pop("name"),
])
def test_missing_required_fields_are_rejected(mutate):
    payload = styling_payload()
    mutate(payload)
    client = make_client(json_response(payload))

    with pytest.raises(MalformedResponseError):
        asyncio.run(client.request_styling(TextInput(text="Peony")))


def test_transport_errors_propagate_without_retry():
    client = make_client(RuntimeError("503 Service Unavailable"), json_response(styling_payload()))

    with pytest.raises(RuntimeError):
        asyncio.run(client.request_styling(TextInput(text="Peony")))
    assert len(client._model_factory.calls) == 1


def test_unconfigured_client_refuses_structured_requests():
    client = make_client(ready=False)

    with pytest.raises(ServiceNotConfigured):
        asyncio.run(client.request_subscription_plan("Classic Elegance"))


def test_subscription_plan_has_four_weeks():
    client = make_client(json_response(SUBSCRIPTION_PLAN))

    plan = asyncio.run(client.request_subscription_plan("Romantic Blush"))

    assert len(plan.weeks) == 4
    assert [week.week for week in plan.weeks] == [1, 2, 3, 4]
    assert all(week.main_flower and week.care_tip for week in plan.weeks)
    call = client._model_factory.calls[0]
    assert call["contents"] == ["Vibe: Romantic Blush."]
    assert "4-week" in call["system_instruction"]


def test_subscription_prompt_carries_preferred_flowers():
    client = make_client(json_response(SUBSCRIPTION_PLAN))

    asyncio.run(client.request_subscription_plan("Wild & Bohemian", "dahlias and sweet peas"))

    prompt = client._model_factory.calls[0]["contents"][0]
    assert "dahlias and sweet peas" in prompt


def test_subscription_with_wrong_week_count_is_malformed():
    payload = json.loads(json.dumps(SUBSCRIPTION_PLAN))
    payload["weeks"] = payload["weeks"][:3]
    client = make_client(json_response(payload))

    with pytest.raises(MalformedResponseError):
        asyncio.run(client.request_subscription_plan("Modern Minimalist"))


def test_illustration_returns_image_bytes():
    image_model = FakeImageModel(outcome=b"png-bytes")
    client = make_client(image_model=image_model)

    image = asyncio.run(client.request_illustration("A peony posy"))

    assert image == b"png-bytes"
    call = image_model.calls[0]
    assert call["prompt"].startswith(ILLUSTRATION_PREAMBLE)
    assert "A peony posy" in call["prompt"]
    assert call["aspect_ratio"] == "1:1"
    assert call["number_of_images"] == 1


@pytest.mark.parametrize("outcome", [
    RuntimeError("quota exceeded"),
    None,
    b"",
])
def test_illustration_failures_resolve_to_none(outcome):
    client = make_client(image_model=FakeImageModel(outcome=outcome))

    assert asyncio.run(client.request_illustration("A peony posy")) is None


def test_illustration_model_load_failure_resolves_to_none():
    def broken_loader(name):
        raise ValueError(f"Publisher Model {name} was not found")

    client = StylistClient(make_settings(), image_model_loader=broken_loader)

    assert asyncio.run(client.request_illustration("A peony posy")) is None


def test_illustration_without_vertex_resolves_to_none():
    image_model = FakeImageModel()
    client = make_client(image_model=image_model, ready=False)

    assert asyncio.run(client.request_illustration("A peony posy")) is None
    assert image_model.calls == []
