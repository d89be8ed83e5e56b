"""
FastAPI Backend

API server for the Horizon chat and content-generation application.
"""

# Load .env FIRST, before any imports that read env vars at import time.
from pathlib import Path
from dotenv import load_dotenv

_project_root = Path(__file__).resolve().parent.parent
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(dotenv_path=_env_file)
else:
    load_dotenv()

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from horizon.app.api.analytics import router as analytics_router
from horizon.app.api.chat import router as chat_router
from horizon.app.api.feed import router as feed_router
from horizon.app.api.media import router as media_router
from horizon.app.api.search import router as search_router
from horizon.app.api.speech import router as speech_router
from horizon.app.api.text_prompts import router as text_prompts_router
from horizon.app.core.config import get_settings
from horizon.app.core.db.relational import init_relational_db
from horizon.app.core.middleware import setup_middleware
from horizon.app.observability.logging import log_event, setup_logging


settings = get_settings()
setup_logging()
init_relational_db()

app = FastAPI(title=settings.app_name)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
setup_middleware(app)

app.include_router(chat_router)
app.include_router(media_router)
app.include_router(feed_router)
app.include_router(analytics_router)
app.include_router(search_router)
app.include_router(speech_router)
app.include_router(text_prompts_router)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = getattr(request.state, "request_id", "")
    classification = type(exc).__name__
    log_event(
        "unhandled_exception",
        request_id=request_id,
        path=request.url.path,
        error_class=classification,
        error=str(exc),
    )
    return JSONResponse(status_code=500, content={"error": f"Internal error: {classification}"})


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "app": settings.app_name,
        "groq_configured": bool(settings.groq_api_key),
        "gemini_configured": bool(settings.gemini_api_key),
        "serper_configured": bool(settings.serper_api_key),
        "freepik_configured": bool(settings.freepik_api_key),
        "cloudinary_configured": settings.cloudinary_configured,
        "truth_db": "relational_sqlalchemy",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
