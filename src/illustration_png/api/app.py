"""FastAPI application serving the SVG to PNG conversion endpoints."""

from __future__ import annotations

import base64
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from illustration_png.api.schemas import (
    BatchConvertRequest,
    BatchConvertResponse,
    BatchItem,
    HealthResponse,
    parse_convert_request,
)
from illustration_png.core.digest import quote_etag
from illustration_png.core.errors import (
    ConversionFailed,
    FieldIssue,
    RequestValidationError,
    SourceNotFound,
)
from illustration_png.core.pipeline import ConversionPipeline
from illustration_png.core.types import ConversionRequest, ServiceConfig
from illustration_png.render.renderer import create_renderer
from illustration_png.sources.svg_source import create_source

if TYPE_CHECKING:
    from illustration_png.core.protocols import Renderer, SvgSource

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

# Every verb is routed here so unsupported ones still get CORS headers with the 405
_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _error_response(status_code: int, body: dict[str, Any]) -> JSONResponse:
    return JSONResponse(body, status_code=status_code, headers=CORS_HEADERS)


def _validation_response(issues: list[FieldIssue]) -> JSONResponse:
    return _error_response(
        400,
        {
            "error": "Invalid conversion request",
            "details": [{"field": i.field, "message": i.message} for i in issues],
        },
    )


def _preflight_or_reject(request: Request) -> Response | None:
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=CORS_HEADERS)
    if request.method != "POST":
        return PlainTextResponse("Method not allowed", status_code=405, headers=CORS_HEADERS)
    return None


def create_app(
    config: ServiceConfig | None = None,
    renderer: Renderer | None = None,
    source: SvgSource | None = None,
) -> FastAPI:
    config = config or ServiceConfig()
    renderer = renderer or create_renderer(config.renderer)
    source = source or create_source(
        base_url=config.source_base_url,
        static_dir=config.static_dir,
        timeout=config.fetch_timeout,
    )
    pipeline = ConversionPipeline(source, renderer)
    cache_control = f"public, max-age={config.cache_max_age}"

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        close = getattr(source, "close", None)
        if close is not None:
            await close()

    app = FastAPI(
        title="Illustration PNG API",
        description="Rasterizes catalog SVG illustrations to PNG",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.pipeline = pipeline

    @app.get("/api/health", response_model=HealthResponse, response_model_by_alias=True)
    async def health_check() -> HealthResponse:
        """Service liveness plus whether the renderer runtime has been loaded."""
        return HealthResponse(
            status="healthy",
            timestamp=datetime.now(timezone.utc).isoformat(),
            renderer_initialized=renderer.initialized,
        )

    @app.api_route("/api/png-convert", methods=_ALL_METHODS)
    async def png_convert(request: Request) -> Response:
        early = _preflight_or_reject(request)
        if early is not None:
            return early

        try:
            raw = await request.json()
        except ValueError:
            return _validation_response([FieldIssue(field="body", message="Body must be valid JSON")])

        try:
            conversion = parse_convert_request(raw, config.max_dimension)
            result = await pipeline.convert(conversion)
        except RequestValidationError as e:
            return _validation_response(e.issues)
        except SourceNotFound as e:
            return _error_response(404, {"error": str(e)})
        except ConversionFailed as e:
            logger.error("PNG conversion error for %s: %s", conversion.svg_path, e, exc_info=e)
            return _error_response(500, {"error": str(e)})
        except Exception:
            logger.exception("Unexpected PNG conversion error")
            return _error_response(500, {"error": "Internal server error"})

        return Response(
            content=result.png,
            media_type="image/png",
            headers={
                **CORS_HEADERS,
                "Cache-Control": cache_control,
                "ETag": quote_etag(result.digest),
            },
        )

    @app.api_route("/api/png-convert/batch", methods=_ALL_METHODS)
    async def png_convert_batch(request: Request) -> Response:
        early = _preflight_or_reject(request)
        if early is not None:
            return early

        try:
            body = BatchConvertRequest.model_validate(await request.json())
        except ValueError:
            return _validation_response(
                [FieldIssue(field="requests", message="Body must be {\"requests\": [...]}")]
            )

        items: list[BatchItem | None] = [None] * len(body.requests)
        valid: list[tuple[int, ConversionRequest]] = []
        for index, raw in enumerate(body.requests):
            try:
                valid.append((index, parse_convert_request(raw, config.max_dimension)))
            except RequestValidationError as e:
                items[index] = BatchItem(success=False, error=str(e))

        outcomes = await pipeline.convert_many([conversion for _, conversion in valid])
        for (index, _), outcome in zip(valid, outcomes):
            items[index] = BatchItem(
                success=outcome.success,
                data=base64.b64encode(outcome.data).decode() if outcome.data else None,
                etag=quote_etag(outcome.digest) if outcome.digest else None,
                error=outcome.error,
            )

        response = BatchConvertResponse(results=items)
        return JSONResponse(response.model_dump(exclude_none=True), headers=CORS_HEADERS)

    return app
