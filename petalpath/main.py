import logging
import uuid
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from .config import ALLOWED_IMAGE_TYPES, StylistSettings
from .errors import MalformedResponseError, NoResponseError, ServiceNotConfigured, StylistError
from .images import InvalidImagePayload, parse_data_url, to_data_url
from .llm_services import StylistClient, backend_error_message, create_stylist_client
from .models import (
    IllustrationOut,
    IllustrationResponse,
    ImageInput,
    RequestInput,
    StylingResponse,
    SubscriptionResponse,
    TextInput,
)
from .orchestrator import RequestCycle, StylistOrchestrator
from .sharing import plan_share, styling_share, week_share
from .svg_generator import create_palette_svg

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)

settings = StylistSettings.from_env()

STATUS_BY_ERROR = {
    InvalidImagePayload: 400,
    MalformedResponseError: 502,
    NoResponseError: 503,
    ServiceNotConfigured: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.stylist_client = create_stylist_client(settings)
    yield


app = FastAPI(title="PetalPath Stylist API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["POST", "GET", "OPTIONS"],
    allow_headers=["*"],
)


def get_stylist_client(request: Request) -> StylistClient:
    return request.app.state.stylist_client


def stylist_http_error(e: StylistError, request_id: str) -> HTTPException:
    status_code = STATUS_BY_ERROR.get(type(e), 500)
    logger.warning(f"Request [{request_id}]: {type(e).__name__}: {e}")
    return HTTPException(status_code=status_code, detail=e.user_message)


def illustrations_out(cycle: RequestCycle) -> List[IllustrationOut]:
    return [
        IllustrationOut(
            key=slot.key,
            prompt=slot.prompt,
            status=slot.state.value,
            image_data_url=to_data_url(slot.image),
        )
        for slot in cycle.illustrations
    ]


async def read_upload(image_file: UploadFile, client: StylistClient, request_id: str) -> ImageInput:
    mime_type = image_file.content_type
    logger.info(f"Request [{request_id}]: Reading uploaded photo {image_file.filename}, type: {mime_type}")

    if mime_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(status_code=400, detail=f"Unsupported image type: {mime_type or 'unknown'}.")

    contents = await image_file.read()
    if not contents:
        logger.warning(f"Request [{request_id}]: Uploaded photo is empty.")
        raise HTTPException(status_code=400, detail="The uploaded photo is empty.")
    if len(contents) > client.settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail=f"Photos are limited to {client.settings.max_upload_mb} MB.")

    return ImageInput(data=contents, mime_type=mime_type)


async def respond_with_styling(
    request: Request,
    client: StylistClient,
    request_input: RequestInput,
    include_images: bool,
    include_overview: bool,
    request_id: str,
) -> StylingResponse:
    orchestrator = StylistOrchestrator(client)
    try:
        cycle = await orchestrator.run_styling(request_input, illustrate=include_images, overview=include_overview)
        logger.info(f"Request [{request_id}]: Styling result for '{cycle.result.name}' received.")
        await cycle.settle()

        result = cycle.result
        return StylingResponse(
            request_id=request_id,
            result=result,
            illustrations=illustrations_out(cycle),
            palette_svg=create_palette_svg(result.color_palette),
            share=styling_share(result, request.headers.get("referer", "")),
        )
    except StylistError as e:
        raise stylist_http_error(e, request_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Request [{request_id}]: Unexpected error: {e}", exc_info=True)
        raise HTTPException(status_code=503, detail=f"{backend_error_message(e, client.settings.text_model)} (ID: {request_id})")
    finally:
        orchestrator.close()


@app.get("/")
async def root():
    logger.info("Root endpoint called (health check).")
    return {"message": "PetalPath Stylist API is running!"}


@app.post("/styling", response_model=StylingResponse)
async def styling_endpoint(
    request: Request,
    flower_name: Optional[str] = Form(None, alias="flowerName"),
    image_file: Optional[UploadFile] = File(None, alias="imageFile"),
    include_images: bool = Form(True, alias="includeImages"),
    include_overview: bool = Form(False, alias="includeOverview"),
    client: StylistClient = Depends(get_stylist_client),
):
    request_id = str(uuid.uuid4())
    logger.info(
        f"Request [{request_id}]: Styling. Name='{flower_name}', Photo: {'Yes' if image_file and image_file.filename else 'No'}"
    )

    if image_file and image_file.filename:
        request_input = await read_upload(image_file, client, request_id)
    elif flower_name and flower_name.strip():
        request_input = TextInput(text=flower_name.strip())
    else:
        raise HTTPException(status_code=422, detail="Enter a flower name or attach a photo.")

    return await respond_with_styling(request, client, request_input, include_images, include_overview, request_id)


@app.post("/styling/snapshot", response_model=StylingResponse)
async def snapshot_styling_endpoint(
    request: Request,
    image_data_url: str = Form(..., alias="imageDataUrl"),
    include_images: bool = Form(True, alias="includeImages"),
    include_overview: bool = Form(False, alias="includeOverview"),
    client: StylistClient = Depends(get_stylist_client),
):
    request_id = str(uuid.uuid4())
    logger.info(f"Request [{request_id}]: Styling from camera snapshot.")

    try:
        image_data, mime_type = parse_data_url(image_data_url)
    except InvalidImagePayload as e:
        raise stylist_http_error(e, request_id)
    if mime_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(status_code=400, detail=f"Unsupported image type: {mime_type or 'unknown'}.")
    if len(image_data) > client.settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail=f"Photos are limited to {client.settings.max_upload_mb} MB.")

    request_input = ImageInput(data=image_data, mime_type=mime_type)
    return await respond_with_styling(request, client, request_input, include_images, include_overview, request_id)


@app.post("/subscription", response_model=SubscriptionResponse)
async def subscription_endpoint(
    request: Request,
    vibe: str = Form(""),
    preferred_flowers: Optional[str] = Form(None, alias="preferredFlowers"),
    include_images: bool = Form(True, alias="includeImages"),
    client: StylistClient = Depends(get_stylist_client),
):
    request_id = str(uuid.uuid4())
    logger.info(f"Request [{request_id}]: Subscription plan. Vibe='{vibe}', Preferred='{preferred_flowers}'")

    orchestrator = StylistOrchestrator(client)
    try:
        cycle = await orchestrator.run_subscription(vibe, preferred_flowers, illustrate=include_images)
        await cycle.settle()

        plan = cycle.result
        share_url = request.headers.get("referer", "")
        logger.info(f"Request [{request_id}]: Plan '{plan.title}' ready.")
        return SubscriptionResponse(
            request_id=request_id,
            plan=plan,
            illustrations=illustrations_out(cycle),
            share=plan_share(plan, share_url),
            week_shares=[week_share(week, share_url) for week in plan.weeks],
        )
    except StylistError as e:
        raise stylist_http_error(e, request_id)
    except Exception as e:
        logger.error(f"Request [{request_id}]: Unexpected error: {e}", exc_info=True)
        raise HTTPException(status_code=503, detail=f"{backend_error_message(e, client.settings.text_model)} (ID: {request_id})")
    finally:
        orchestrator.close()


@app.post("/illustration", response_model=IllustrationResponse)
async def illustration_endpoint(
    prompt: str = Form(...),
    client: StylistClient = Depends(get_stylist_client),
):
    image = await client.request_illustration(prompt)
    return IllustrationResponse(prompt=prompt, image_data_url=to_data_url(image))
