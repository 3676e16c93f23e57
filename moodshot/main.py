from __future__ import annotations

import json
import logging
import os
import uuid
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from moodshot.config import Settings, get_settings
from moodshot.errors import (
    ConfigurationError,
    InputValidationError,
    MoodshotError,
    TotalGenerationFailure,
)
from moodshot.middlewares.body_guard import BodyGuardMiddleware
from moodshot.middlewares.cors import EmptyPreflightCORSMiddleware
from moodshot.schemas import (
    ErrorResponse,
    GenerateRequest,
    GenerateResponse,
    ModelPresetInfo,
    ModelPresetListing,
)
from moodshot.services.batch import generate_batch
from moodshot.services.envelope import error_envelope, success_envelope
from moodshot.services.factory import build_generator, build_image_host
from moodshot.services.image_host import ingest_references
from moodshot.services.model_presets import list_presets
from moodshot.services.prompt_builder import build_prompt
from moodshot.services.reference_prep import prepare_references

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logging.getLogger("uvicorn").setLevel(LOG_LEVEL)
logging.getLogger("uvicorn.error").setLevel(LOG_LEVEL)
logging.getLogger("uvicorn.access").setLevel(LOG_LEVEL)
logging.getLogger("moodshot").setLevel(LOG_LEVEL)

logger = logging.getLogger("moodshot")

app = FastAPI(title="Product Mood Shot API", version="1.0.0")

settings = get_settings()

app.add_middleware(BodyGuardMiddleware, max_bytes=settings.max_body_bytes)
logger.info("BodyGuardMiddleware ready max_body_bytes=%s", settings.max_body_bytes)

cors_allow_all = "*" in settings.allowed_origins
app.add_middleware(
    EmptyPreflightCORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=not cors_allow_all,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=86400,
)


@app.get("/", include_in_schema=False)
def root() -> dict[str, Any]:
    return {"service": "moodshot", "ok": True}


@app.head("/", include_in_schema=False)
def root_head() -> Response:
    return Response(status_code=200)


@app.get("/health")
def health() -> dict[str, bool]:
    return {"ok": True}


@app.get("/api/models", response_model=ModelPresetListing)
def api_models() -> ModelPresetListing:
    return ModelPresetListing(
        default=get_settings().replicate.model,
        presets=[
            ModelPresetInfo(name=preset.name, label=preset.label, model=preset.model)
            for preset in list_presets()
        ],
    )


@app.options("/api/generate", include_in_schema=False)
async def generate_preflight() -> Response:
    return Response(status_code=200)


@app.api_route(
    "/api/generate",
    methods=["GET", "HEAD", "PUT", "PATCH", "DELETE", "TRACE"],
    include_in_schema=False,
)
async def generate_method_not_allowed() -> JSONResponse:
    return JSONResponse(
        status_code=405,
        content=error_envelope("method_not_allowed", "Only POST is supported"),
        headers={"Allow": "POST, OPTIONS"},
    )


async def read_json_relaxed(request: Request) -> dict:
    body = await request.body()
    if not body:
        raise InputValidationError("Request body is empty")
    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise InputValidationError("Request body must be valid JSON") from exc
    if not isinstance(payload, dict):
        raise InputValidationError("Request body must be a JSON object")
    return payload


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = ".".join(str(item) for item in error.get("loc", ()))
        msg = str(error.get("msg", "invalid value")).removeprefix("Value error, ")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "Invalid request"


def _parse_request(raw: dict) -> GenerateRequest:
    try:
        return GenerateRequest.model_validate(raw)
    except ValidationError as exc:
        raise InputValidationError(_validation_message(exc)) from exc


def _ensure_configured(current: Settings) -> None:
    missing = current.missing_credentials()
    if missing:
        logger.error("Missing configuration: %s", ", ".join(missing))
        raise ConfigurationError(f"Service is not configured: {', '.join(missing)} missing")


async def _generate(request: Request, rid: str) -> dict[str, Any]:
    current = get_settings()
    _ensure_configured(current)

    payload = _parse_request(await read_json_relaxed(request))
    generator = build_generator(current, payload.model)
    host = build_image_host(current)

    logger.info(
        "[generate] rid=%s count=%s model=%s pipeline=%s image_size=%s query_len=%s payload_lens=%s",
        rid,
        payload.count,
        generator.preset.name,
        payload.pipeline,
        payload.image_size,
        len(payload.query),
        [len(item) for item in payload.image_urls],
    )

    prompt = build_prompt(payload.query, payload.mood_intensity, payload.product_preservation)

    uploaded = await ingest_references(host, payload.image_urls)
    references = {ref.role: ref.url for ref in uploaded}
    logger.info("[generate] rid=%s references uploaded via %s", rid, host.name)

    if payload.pipeline == "advanced":
        references = await prepare_references(generator, references)

    async def attempt(seed: int) -> str | None:
        return await generator.generate(
            prompt.prompt,
            prompt.negative_prompt,
            references,
            seed,
            image_size=payload.image_size,
        )

    result = await generate_batch(attempt, payload.count)
    logger.info(
        "[generate] rid=%s done %s/%s rounds=%s attempts=%s est_cost=$%.2f",
        rid,
        result.count,
        result.requested,
        result.rounds,
        len(result.attempts),
        len(result.attempts) * current.cost_per_image,
    )
    return success_envelope(result, generator.label)


@app.post(
    "/api/generate",
    response_model=GenerateResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def api_generate(request: Request) -> JSONResponse:
    rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
    headers = {"X-Request-ID": rid}

    try:
        content = await _generate(request, rid)
    except TotalGenerationFailure as exc:
        logger.error("[generate] rid=%s %s", rid, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope(exc.code, "Image generation failed"),
            headers=headers,
        )
    except MoodshotError as exc:
        logger.warning("[generate] rid=%s %s: %s", rid, exc.code, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope(exc.code, exc.message),
            headers=headers,
        )
    except Exception:
        logger.exception("[generate] rid=%s unexpected failure", rid)
        return JSONResponse(
            status_code=500,
            content=error_envelope("generation_failed", "Image generation failed"),
            headers=headers,
        )

    return JSONResponse(content=content, headers=headers)


__all__ = ["app"]
