# app.py: poker screenshot -> table state -> recommendation
from typing import Any, Dict, Optional
import time

import httpx
from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.responses import JSONResponse

import config
from config import (
    IMAGE_QUALITY,
    MAX_IMAGE_WIDTH,
    OPENAI_API_KEY,
    OPENAI_MAX_RETRIES,
    OPENAI_TIMEOUT_SECONDS,
    PORT,
)
from imaging import ImageError, encode_image_data_url
from pipeline import PipelineError, extract_table_state, recommend
from schema import AnalyzeResponse, ErrorResponse

# ---------------- OpenAI client ----------------
_openai_client = None
try:
    from openai import OpenAI
    _openai_client = OpenAI(
        api_key=OPENAI_API_KEY,
        timeout=httpx.Timeout(OPENAI_TIMEOUT_SECONDS, connect=10.0),
        max_retries=OPENAI_MAX_RETRIES,
    ) if OPENAI_API_KEY else None
    print("DEBUG[config]: OpenAI client initialized:", bool(_openai_client))
except Exception as e:
    print("DEBUG[config]: Error initializing OpenAI client:", e)
    _openai_client = None


def get_openai_client():
    return _openai_client


# ---------------- App setup ----------------
app = FastAPI(title="Poker Vision – Table State & Strategy")


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError):
    print(f"ERROR[analyze]: {exc.error} ({exc.status_code}):", exc.details)
    return JSONResponse(status_code=exc.status_code, content=exc.payload())


def _elapsed_s(start: float) -> float:
    return round(time.perf_counter() - start, 3)


def _print_timing_summary(timings: Dict[str, float]) -> None:
    print(
        "TIMING[/api/analyze]:\n"
        f"  encode={timings.get('encode', 0.0):.3f}s\n"
        f"  extraction={timings.get('extraction', 0.0):.3f}s\n"
        f"  strategy={timings.get('strategy', 0.0):.3f}s\n"
        f"  total={timings.get('total', 0.0):.3f}s"
    )


def _error(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    content: Dict[str, Any] = {"error": error}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


# ---------------- Routes ----------------
@app.post(
    "/api/analyze",
    response_model=AnalyzeResponse,
    responses={400: {"model": ErrorResponse}, 422: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def analyze(image: Optional[UploadFile] = File(default=None), client=Depends(get_openai_client)):
    timings: Dict[str, float] = {}
    total_start = time.perf_counter()
    try:
        data = image.file.read() if image is not None else b""
        if not data:
            return _error(400, "No image uploaded")
        print("DEBUG[upload]: MIME:", image.content_type, "bytes:", len(data))

        if client is None:
            return _error(500, "OpenAI API not configured")

        t = time.perf_counter()
        try:
            data_url = encode_image_data_url(data, image.content_type or "", max_width=MAX_IMAGE_WIDTH, quality=IMAGE_QUALITY)
        except ImageError as e:
            return _error(400, "Could not read image", str(e))
        timings["encode"] = _elapsed_s(t)

        t = time.perf_counter()
        state, meta = extract_table_state(
            client,
            data_url,
            strict=config.STRICT_EXTRACTION,
            self_check=config.SELF_CHECK_ENABLED,
            send_image=config.SELF_CHECK_SEND_IMAGE,
        )
        timings["extraction"] = _elapsed_s(t)

        t = time.perf_counter()
        recommendation = recommend(client, state)
        timings["strategy"] = _elapsed_s(t)

        timings["total"] = _elapsed_s(total_start)
        meta["timings"] = timings
        _print_timing_summary(timings)
        return AnalyzeResponse(state=state, recommendation=recommendation, meta=meta)
    except PipelineError:
        raise
    except Exception as e:
        print("ERROR[analyze]: unexpected failure:", repr(e))
        return _error(500, "Server error", str(e) or e.__class__.__name__)
    finally:
        if image is not None:
            image.file.close()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)

# Run: uvicorn app:app --reload
