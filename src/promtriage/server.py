"""HTTP server for uploading metrics dumps and getting reports back.

The rule set is loaded once when the app is created and shared read-only by
every request; each upload is parsed and analyzed on its own in a worker
thread so the event loop is never blocked.
"""

import asyncio
import logging
from typing import Optional

from fastapi import FastAPI, File, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST
from pydantic import BaseModel

from . import __version__
from .analyzer import extract_cluster_name, run_analysis
from .config import AnalyzerConfig, get_config
from .errors import PromtriageError
from .metrics import parse_metrics_text
from .observability import get_metrics, initialize_metrics
from .reporting import render_console, render_markdown
from .rules import RuleSet

logger = logging.getLogger(__name__)


class AnalyzeResponse(BaseModel):
    """Both renderings of one analysis, or the reason there are none."""

    markdown: str = ""
    console: str = ""
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: str


class VersionResponse(BaseModel):
    version: str
    lastUpdate: str


def _respond(response: AnalyzeResponse, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=response.model_dump(exclude_none=True))


def create_app(config: Optional[AnalyzerConfig] = None, rule_set: Optional[RuleSet] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Raises RuleLoadError when ``rule_set`` is not given and the configured
    rules directory cannot be loaded.
    """
    config = config or get_config()
    if rule_set is None:
        rule_set = RuleSet.load(
            config.rules.rules_dir, config.rules.resolved_load_level_dir()
        )
    logger.info(f"Serving with {len(rule_set)} rules from {config.rules.rules_dir}")

    if config.telemetry.metrics.enabled and get_metrics() is None:
        initialize_metrics(config.telemetry)

    template_path = config.report.template_path
    max_file_size = config.server.max_file_size

    app = FastAPI(title="promtriage", version=__version__)

    def analyze_upload(data: bytes, filename: str) -> AnalyzeResponse:
        try:
            store = parse_metrics_text(data.decode("utf-8", errors="replace"))
            report = run_analysis(store, rule_set, cluster_name=extract_cluster_name(filename))
        except PromtriageError as e:
            logger.warning(f"Analysis of {filename} failed: {e}")
            return AnalyzeResponse(error=f"Analysis failed: {e}")

        response = AnalyzeResponse(
            console=render_console(report, color=False),
            markdown=render_markdown(report, template_path),
        )
        if not response.markdown:
            response.error = "Markdown generation returned empty content"
        return response

    @app.post("/api/analyze/both", response_model=AnalyzeResponse)
    async def analyze_both(file: Optional[UploadFile] = File(default=None)):
        if file is None:
            return _respond(AnalyzeResponse(error="No file uploaded"), 400)

        data = await file.read(max_file_size + 1)
        if len(data) > max_file_size:
            return _respond(
                AnalyzeResponse(error=f"File exceeds maximum size of {max_file_size} bytes"), 413
            )

        filename = file.filename or "metrics.prom"
        logger.info(f"Processing file: {filename} ({len(data)} bytes)")

        try:
            response = await asyncio.wait_for(
                run_in_threadpool(analyze_upload, data, filename),
                timeout=config.server.request_timeout,
            )
        except asyncio.TimeoutError:
            return _respond(AnalyzeResponse(error="Request timed out"), 408)

        if response.error and not response.console and not response.markdown:
            return _respond(response, 500)
        return _respond(response)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/version", response_model=VersionResponse)
    async def version() -> VersionResponse:
        return VersionResponse(
            version=__version__ or "Unknown",
            lastUpdate=config.server.build_time or "Unknown",
        )

    @app.get("/metrics")
    async def metrics() -> PlainTextResponse:
        collector = get_metrics()
        if collector is None:
            return PlainTextResponse("metrics disabled\n", status_code=404)
        return PlainTextResponse(collector.get_metrics_text(), media_type=CONTENT_TYPE_LATEST)

    return app
