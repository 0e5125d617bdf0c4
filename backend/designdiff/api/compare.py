"""POST /api/compare and /api/compare/batch — screenshot vs design comparison."""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import time
from functools import partial

from fastapi import APIRouter, Depends

from designdiff.config import Settings
from designdiff.dependencies import base_config, get_settings
from designdiff.engine.batch import BatchJob, BatchOutcome, compare_batch, summarize_batch
from designdiff.engine.errors import CorruptImageData, Stage
from designdiff.engine.pipeline import create_pipeline
from designdiff.engine.raster import RasterImage
from designdiff.models.requests import BatchCompareRequest, CompareRequest, ImagePayload
from designdiff.models.responses import (
    BatchCompareResponse,
    BatchItem,
    BatchSummaryInfo,
    CompareResponse,
    ErrorInfo,
    RankingInfo,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def decode_image(payload: ImagePayload, label: str) -> RasterImage:
    try:
        data = base64.b64decode(payload.rgba, validate=True)
    except (binascii.Error, ValueError) as e:
        raise CorruptImageData(f"{label} image is not valid base64: {e}", stage=Stage.PREPROCESS) from e
    try:
        return RasterImage.from_bytes(payload.width, payload.height, data)
    except CorruptImageData as e:
        raise CorruptImageData(f"{label} image: {e}", stage=Stage.PREPROCESS) from e


def encode_image(image: RasterImage) -> ImagePayload:
    return ImagePayload(
        width=image.width,
        height=image.height,
        rgba=base64.b64encode(image.to_bytes()).decode("ascii"),
    )


@router.post("/compare", response_model=CompareResponse)
async def compare(req: CompareRequest, current: Settings = Depends(get_settings)) -> CompareResponse:
    start = time.perf_counter()
    config = base_config(current).with_overrides(req.options)
    expected = decode_image(req.expected, "expected")
    actual = decode_image(req.actual, "actual")

    pipeline = create_pipeline(config)
    loop = asyncio.get_running_loop()
    result = await loop.run_in_executor(None, partial(pipeline.run, expected, actual, req.design_tree))

    elapsed = (time.perf_counter() - start) * 1000
    return CompareResponse(
        report=result.report,
        overlay=encode_image(result.overlay) if req.include_overlay else None,
        processing_time_ms=round(elapsed, 1),
    )


@router.post("/compare/batch", response_model=BatchCompareResponse)
async def compare_many(req: BatchCompareRequest, current: Settings = Depends(get_settings)) -> BatchCompareResponse:
    start = time.perf_counter()
    config = base_config(current).with_overrides(req.options)
    # Undecodable jobs fail on their own; the rest of the batch still runs
    slots: list[BatchJob | BatchOutcome] = []
    for job in req.jobs:
        try:
            slots.append(BatchJob(
                name=job.name,
                expected=decode_image(job.expected, f"{job.name} expected"),
                actual=decode_image(job.actual, f"{job.name} actual"),
                design_tree=job.design_tree,
            ))
        except CorruptImageData as e:
            logger.warning("Batch job %s rejected: %s", job.name, e)
            slots.append(BatchOutcome(name=job.name, error=e))

    runnable = [s for s in slots if isinstance(s, BatchJob)]
    loop = asyncio.get_running_loop()
    ran, _ = await loop.run_in_executor(
        None, partial(compare_batch, runnable, config, current.batch_max_workers),
    )
    finished = iter(ran)
    outcomes = [next(finished) if isinstance(s, BatchJob) else s for s in slots]
    summary = summarize_batch(outcomes)

    results = [
        BatchItem(
            name=o.name,
            ok=o.ok,
            report=o.result.report if o.result is not None else None,
            error=ErrorInfo(**o.error.to_dict()) if o.error is not None else None,
        )
        for o in outcomes
    ]
    elapsed = (time.perf_counter() - start) * 1000
    return BatchCompareResponse(
        results=results,
        summary=BatchSummaryInfo(
            total=summary.total,
            succeeded=summary.succeeded,
            failed=summary.failed,
            average_match_percentage=summary.average_match_percentage,
            ranking=[
                RankingInfo(
                    name=e.name,
                    match_percentage=e.match_percentage,
                    grade=e.grade,
                    suggestions=e.suggestions,
                )
                for e in summary.ranking
            ],
        ),
        processing_time_ms=round(elapsed, 1),
    )
