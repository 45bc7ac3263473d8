import base64

import pytest
from fastapi.testclient import TestClient

from petalpath.main import app, get_stylist_client
from tests.fakes import (
    EMPTY_RESPONSE,
    SUBSCRIPTION_PLAN,
    FakeImageModel,
    json_response,
    make_client,
    styling_payload,
    text_response,
)


@pytest.fixture
def use_client():
    def install(stylist_client):
        app.dependency_overrides[get_stylist_client] = lambda: stylist_client
        return TestClient(app)

    yield install
    app.dependency_overrides.clear()


def test_health_check(use_client):
    http = use_client(make_client())

    response = http.get("/")

    assert response.status_code == 200
    assert "running" in response.json()["message"]


def test_styling_by_name(use_client):
    stylist = make_client(json_response(styling_payload()))
    http = use_client(stylist)

    response = http.post("/styling", data={"flowerName": "Peony"})

    assert response.status_code == 200
    body = response.json()
    assert body["result"]["name"] == "Peony"
    assert body["result"]["careInstructions"]["temperature"] == "16-21°C"
    assert len(body["result"]["wrappingTechniques"]) == 3
    assert [item["status"] for item in body["illustrations"]] == ["ready"] * 3
    assert body["illustrations"][0]["imageDataUrl"].startswith("data:image/png;base64,")
    assert "<svg" in body["paletteSvg"]
    assert body["share"]["title"] == "PetalPath: Styling guide for Peony"
    assert body["requestId"]


def test_styling_without_images(use_client):
    stylist = make_client(json_response(styling_payload()))
    http = use_client(stylist)

    response = http.post("/styling", data={"flowerName": "Peony", "includeImages": "false"})

    assert response.status_code == 200
    assert response.json()["illustrations"] == []
    assert stylist.image_model.calls == []


def test_unavailable_illustrations_become_null(use_client):
    stylist = make_client(json_response(styling_payload()), image_model=FakeImageModel(outcome=None))
    http = use_client(stylist)

    response = http.post("/styling", data={"flowerName": "Peony"})

    assert response.status_code == 200
    assert all(item["status"] == "unavailable" and item["imageDataUrl"] is None
               for item in response.json()["illustrations"])


def test_styling_from_uploaded_photo(use_client):
    photo = b"\xff\xd8\xff\xe0 jpeg"
    stylist = make_client(json_response(styling_payload()))
    http = use_client(stylist)

    response = http.post(
        "/styling",
        data={"includeImages": "false"},
        files={"imageFile": ("bouquet.jpg", photo, "image/jpeg")},
    )

    assert response.status_code == 200
    image_part = stylist._model_factory.calls[0]["contents"][0]
    assert image_part.inline_data.data == photo


def test_styling_from_camera_snapshot(use_client):
    photo = b"snapshot-bytes"
    stylist = make_client(json_response(styling_payload()))
    http = use_client(stylist)
    data_url = "data:image/jpeg;base64," + base64.b64encode(photo).decode()

    response = http.post("/styling/snapshot", data={"imageDataUrl": data_url, "includeImages": "false"})

    assert response.status_code == 200
    assert stylist._model_factory.calls[0]["contents"][0].inline_data.data == photo


def test_malformed_snapshot_is_rejected(use_client):
    http = use_client(make_client())

    response = http.post("/styling/snapshot", data={"imageDataUrl": "not-a-data-url"})

    assert response.status_code == 400


def test_unsupported_upload_type_is_rejected(use_client):
    http = use_client(make_client())

    response = http.post("/styling", files={"imageFile": ("notes.txt", b"hello", "text/plain")})

    assert response.status_code == 400


def test_empty_upload_is_rejected(use_client):
    http = use_client(make_client())

    response = http.post("/styling", files={"imageFile": ("empty.jpg", b"", "image/jpeg")})

    assert response.status_code == 400


def test_missing_input_is_rejected(use_client):
    http = use_client(make_client())

    response = http.post("/styling", data={"flowerName": "   "})

    assert response.status_code == 422


@pytest.mark.parametrize("reply, status_code", [
    (EMPTY_RESPONSE, 503),
    (text_response("{not json"), 502),
])
def test_text_failures_map_to_error_statuses(use_client, reply, status_code):
    stylist = make_client(reply)
    http = use_client(stylist)

    response = http.post("/styling", data={"flowerName": "Peony"})

    assert response.status_code == status_code
    assert stylist.image_model.calls == []


def test_unconfigured_backend_answers_503(use_client):
    http = use_client(make_client(ready=False))

    response = http.post("/subscription", data={"vibe": "Classic Elegance"})

    assert response.status_code == 503


def test_unexpected_backend_error_answers_503(use_client):
    http = use_client(make_client(RuntimeError("Publisher Model gemini-x was not found")))

    response = http.post("/styling", data={"flowerName": "Peony"})

    assert response.status_code == 503
    assert "could not be used" in response.json()["detail"]


def test_subscription_plan(use_client):
    stylist = make_client(json_response(SUBSCRIPTION_PLAN))
    http = use_client(stylist)

    response = http.post("/subscription", data={"vibe": "Romantic Blush", "preferredFlowers": "peonies"})

    assert response.status_code == 200
    body = response.json()
    assert len(body["plan"]["weeks"]) == 4
    assert body["plan"]["weeks"][0]["mainFlower"] == "Peony"
    assert [item["key"] for item in body["illustrations"]] == ["week-1", "week-2", "week-3", "week-4"]
    assert body["weekShares"][1]["title"] == "PetalPath: Week 2 Design"
    assert "peonies" in stylist._model_factory.calls[0]["contents"][0]


def test_illustration_endpoint_never_fails(use_client):
    http = use_client(make_client(image_model=FakeImageModel(outcome=RuntimeError("boom"))))

    response = http.post("/illustration", data={"prompt": "A peony posy"})

    assert response.status_code == 200
    assert response.json() == {"prompt": "A peony posy", "imageDataUrl": None}
