"""FastAPI application exposing tabrelay services."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.concurrency import run_in_threadpool

from tabrelay.access import OriginMatcher, RateLimiter
from tabrelay.api.schemas import OnSongRequest, SubmissionPayload, TabResultModel, WorshipchordsRequest
from tabrelay.config import Settings, get_settings
from tabrelay.errors import ClientInputError, DownstreamRelayError, TabRelayError
from tabrelay.formats import ConverterConfig, FormatGateway, parse_tab_id, validate_worshipchords_url
from tabrelay.metrics.observability import bind_correlation_id, clear_correlation_id, configure_logging, get_logger
from tabrelay.relay import RelayConfig, SubmissionRelay, validate_submission
from tabrelay.search import SearchConfig, SearchService, TabSearchService


@dataclass(frozen=True)
class AppDependencies:
    search_service: SearchService
    format_gateway: FormatGateway
    relay: SubmissionRelay
    origin_matcher: OriginMatcher
    general_limiter: RateLimiter
    strict_limiter: RateLimiter


def _build_dependencies(settings: Settings) -> AppDependencies:
    search_service = TabSearchService(
        SearchConfig(
            url=settings.search_url,
            timeout_seconds=settings.search_timeout_seconds,
            user_agent=settings.search_user_agent,
        ),
    )
    format_gateway = FormatGateway(ConverterConfig(command=settings.converter_command_tuple))
    relay = SubmissionRelay(
        RelayConfig(webhook_url=settings.webhook_url, timeout_seconds=settings.webhook_timeout_seconds),
    )
    general_limiter = RateLimiter(
        "general",
        settings.rate_limit_requests,
        settings.rate_limit_window_seconds,
        trust_forwarded_for=settings.trust_forwarded_for,
    )
    strict_limiter = RateLimiter(
        "strict",
        settings.strict_rate_limit_requests,
        settings.rate_limit_window_seconds,
        trust_forwarded_for=settings.trust_forwarded_for,
    )
    return AppDependencies(
        search_service=search_service,
        format_gateway=format_gateway,
        relay=relay,
        origin_matcher=OriginMatcher(settings.allowed_origins_tuple),
        general_limiter=general_limiter,
        strict_limiter=strict_limiter,
    )


def create_app(*, settings: Settings | None = None, dependencies: AppDependencies | None = None) -> FastAPI:
    settings = settings or get_settings()
    deps = dependencies or _build_dependencies(settings)

    configure_logging(settings.log_level)
    logger = get_logger("api")

    def check_origin(request: Request) -> None:
        deps.origin_matcher.check(request.headers.get("origin"))

    # Origin is checked before the general limit counts the request.
    app = FastAPI(
        title="tabrelay API",
        version="0.1.0",
        dependencies=[Depends(check_origin), Depends(deps.general_limiter)],
    )
    app.state.dependencies = deps

    matcher = deps.origin_matcher
    if matcher.allow_all:
        app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["GET", "POST", "OPTIONS"], allow_headers=["*"])
    elif matcher.patterns:
        app.add_middleware(
            CORSMiddleware,
            allow_origin_regex=matcher.as_regex(),
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
        )

    @app.middleware("http")
    async def add_correlation_id(request: Request, call_next):  # type: ignore[override]
        correlation_id = request.headers.get("X-Request-ID", uuid4().hex)
        request.state.correlation_id = correlation_id
        bind_correlation_id(correlation_id)
        try:
            response = await call_next(request)
        finally:
            clear_correlation_id()
        response.headers["X-Correlation-ID"] = correlation_id
        return response

    def _correlation_id(request: Request) -> str:
        return getattr(request.state, "correlation_id", uuid4().hex)

    @app.exception_handler(ClientInputError)
    async def handle_client_input(request: Request, exc: ClientInputError) -> Response:
        logger.info("request.invalid", path=request.url.path, detail=str(exc))
        return PlainTextResponse(exc.public_message, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> Response:
        logger.info("request.malformed", path=request.url.path, errors=exc.errors())
        return PlainTextResponse("Invalid JSON request", status_code=status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(DownstreamRelayError)
    async def handle_relay_error(request: Request, exc: DownstreamRelayError) -> Response:
        logger.error("relay.error", status=exc.status_code, detail=str(exc), correlation_id=_correlation_id(request))
        if exc.payload is not None:
            return JSONResponse(status_code=exc.status_code, content={**exc.payload, "error": exc.public_message})
        return PlainTextResponse(exc.public_message, status_code=exc.status_code)

    @app.exception_handler(TabRelayError)
    async def handle_tabrelay_error(request: Request, exc: TabRelayError) -> JSONResponse:
        correlation_id = _correlation_id(request)
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            "request.failed",
            error_type=type(exc).__name__,
            status=exc.status_code,
            path=request.url.path,
            detail=str(exc),
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.public_message, "correlation_id": correlation_id},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        correlation_id = _correlation_id(request)
        logger.error("unhandled.error", correlation_id=correlation_id, detail=str(exc))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal Server Error", "correlation_id": correlation_id},
        )

    def get_dependencies(request: Request) -> AppDependencies:
        return request.app.state.dependencies

    def get_search_service(dep: AppDependencies = Depends(get_dependencies)) -> SearchService:
        return dep.search_service

    def get_format_gateway(dep: AppDependencies = Depends(get_dependencies)) -> FormatGateway:
        return dep.format_gateway

    def get_relay(dep: AppDependencies = Depends(get_dependencies)) -> SubmissionRelay:
        return dep.relay

    @app.get("/search", response_model=list[TabResultModel], response_model_exclude_unset=True)
    async def search_tabs(
        title: str | None = None,
        service: SearchService = Depends(get_search_service),
    ) -> list[TabResultModel]:
        if not title or not title.strip():
            raise ClientInputError("Missing required parameter: title")
        results = await service.search(title.strip())
        return [TabResultModel(**result.to_public()) for result in results]

    @app.post("/onsong", response_class=PlainTextResponse)
    async def onsong(
        payload: OnSongRequest,
        gateway: FormatGateway = Depends(get_format_gateway),
    ) -> PlainTextResponse:
        tab_id = parse_tab_id(payload.id)
        text = await run_in_threadpool(gateway.fetch_onsong, tab_id)
        return PlainTextResponse(text)

    @app.post("/worshipchords", response_class=PlainTextResponse)
    async def worshipchords(
        payload: WorshipchordsRequest,
        gateway: FormatGateway = Depends(get_format_gateway),
    ) -> PlainTextResponse:
        url = validate_worshipchords_url(payload.url)
        text = await run_in_threadpool(gateway.fetch_worshipchords, url)
        return PlainTextResponse(text)

    @app.post("/send-to-drive")
    async def send_to_drive(
        payload: SubmissionPayload,
        relay: SubmissionRelay = Depends(get_relay),
        _rl: None = Depends(deps.strict_limiter),
    ) -> Response:
        submission = validate_submission(payload.model_dump(exclude_none=True), lenient=settings.submission_lenient)
        outcome = await relay.send(submission)
        return Response(content=outcome.body, status_code=outcome.status_code, media_type=outcome.media_type)

    @app.get("/health", response_class=PlainTextResponse)
    async def health() -> PlainTextResponse:
        return PlainTextResponse("OK")

    @app.get("/metrics")
    async def metrics() -> Response:
        payload = generate_latest()
        return Response(content=payload, media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()
