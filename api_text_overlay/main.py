"""
Text Overlay API
Puts TikTok-style white bubble captions on an uploaded image.
Port: 3000 (PORT env var)
"""

import os
from datetime import datetime, timezone
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from caption_overlay.balancer import BalanceOptions
from caption_overlay.errors import CodecError, ConfigError, InputError, ResourceError
from caption_overlay.service import OverlayService

load_dotenv()

SERVICE_NAME = "TikTok Text Overlay API"
VERSION = "1.0.0"
ALLOWED_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

if os.getenv("LOG_FILE"):
    logger.add(os.getenv("LOG_FILE"), rotation="10 MB", retention="7 days", level="INFO", encoding="utf-8")

app = FastAPI(title=SERVICE_NAME, version=VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",")],
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
)

overlay_service = OverlayService()


class ConfigureRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    font_size: Optional[int] = Field(None, alias="fontSize")
    position: Optional[str] = None
    font_family: Optional[str] = Field(None, alias="fontFamily")
    font_weight: Optional[str] = Field(None, alias="fontWeight")
    line_height: Optional[float] = Field(None, alias="lineHeight")
    text_color: Optional[str] = Field(None, alias="textColor")
    bubble_color: Optional[str] = Field(None, alias="bubbleColor")
    bubble_opacity: Optional[float] = Field(None, alias="bubbleOpacity")
    bubble_padding: Optional[float] = Field(None, alias="bubblePadding")
    horizontal_padding: Optional[float] = Field(None, alias="horizontalPadding")
    bubble_radius: Optional[float] = Field(None, alias="bubbleRadius")
    max_width: Optional[int] = Field(None, alias="maxWidth")
    line_policy: Optional[str] = Field(None, alias="linePolicy")
    shadow_enabled: Optional[bool] = Field(None, alias="shadowEnabled")


class PreviewOptions(BaseModel):
    target_words_per_line: float = Field(3.5, alias="targetWordsPerLine")
    min_words_per_line: int = Field(2, alias="minWordsPerLine")
    max_words_per_line: int = Field(5, alias="maxWordsPerLine")
    max_char_variance: float = Field(0.3, alias="maxCharVariance")


class PreviewRequest(BaseModel):
    text: str = ""
    options: Optional[PreviewOptions] = None


def _error(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "message": message})


@app.exception_handler(InputError)
async def input_error_handler(request: Request, exc: InputError):
    return _error(400, "Invalid input", str(exc))


@app.exception_handler(ConfigError)
async def config_error_handler(request: Request, exc: ConfigError):
    return _error(400, "Invalid configuration", str(exc))


@app.exception_handler(CodecError)
async def codec_error_handler(request: Request, exc: CodecError):
    return _error(400, "Unreadable image", str(exc))


@app.exception_handler(ResourceError)
async def resource_error_handler(request: Request, exc: ResourceError):
    logger.error(f"Resource error: {exc}")
    return _error(500, "Missing resource", str(exc))


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"API error on {request.url.path}")
    message = "An unexpected error occurred" if os.getenv("ENV") == "production" else str(exc)
    return _error(500, "Internal server error", message)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@app.get("/health")
async def health():
    return {"status": "OK", "timestamp": _now(), "service": SERVICE_NAME, "version": VERSION}


@app.post("/api/text-overlay")
async def text_overlay(
        avatar: Optional[UploadFile] = File(None),
        text: str = Form(""),
        position: Optional[str] = Form(None),
        fontSize: Optional[int] = Form(None),
        lineHeight: Optional[float] = Form(None),
):
    if avatar is None:
        return _error(400, "No image file provided", 'Please upload an avatar image using the "avatar" field')
    if not text.strip():
        return _error(400, "No text provided", 'Please provide text content in the "text" field')
    if avatar.content_type not in ALLOWED_TYPES:
        return _error(400, "File upload error", "Invalid file type. Only JPEG, PNG, and WebP images are allowed.")

    image_bytes = await avatar.read()
    if len(image_bytes) > MAX_UPLOAD_BYTES:
        return _error(400, "File too large", f"File size must be less than {MAX_UPLOAD_BYTES // (1024 * 1024)}MB")

    # Per-request overrides never touch the service default
    overrides = {"position": position or "bottom"}
    if fontSize is not None:
        overrides["font_size"] = fontSize
    if lineHeight is not None:
        overrides["line_height"] = lineHeight
    config = overlay_service.config.merged(**overrides)

    result = await run_in_threadpool(overlay_service.render_overlay, image_bytes, text.strip(), config)

    return {
        "success": True,
        "message": "Text overlay processed successfully",
        "data": {
            "imageBase64": result.image_base64,
            "originalImage": avatar.filename,
            "text": text.strip(),
            "position": config.position.value,
            "fontSize": config.font_size,
            "lineHeight": config.line_height,
            "lines": result.lines,
            "timestamp": _now(),
        },
    }


@app.post("/api/configure")
async def configure(req: ConfigureRequest):
    changes = req.model_dump(exclude_none=True)
    current = overlay_service.configure(**changes) if changes else overlay_service.config
    return {
        "success": True,
        "message": "Configuration updated successfully",
        "data": {"currentConfig": current.model_dump(mode="json")},
    }


@app.post("/api/preview-text")
async def preview_text(req: PreviewRequest):
    if not req.text.strip():
        return _error(400, "No text provided", "Please provide text content for preview")

    options = BalanceOptions(**req.options.model_dump()) if req.options else None
    preview = await run_in_threadpool(overlay_service.preview, req.text, options)

    return {
        "success": True,
        "message": "Text preview generated successfully",
        "data": {
            "originalText": req.text,
            "lines": [p.text for p in preview],
            "lineCount": len(preview),
            "preview": [
                {
                    "lineNumber": p.line_number,
                    "text": p.text,
                    "wordCount": p.word_count,
                    "characterCount": p.character_count,
                }
                for p in preview
            ],
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "127.0.0.1"), port=int(os.getenv("PORT", "3000")))
