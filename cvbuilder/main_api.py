import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.routes.conversation import router as conversation_router
from .api.routes.pdf import router as pdf_router
from .api.routes.session import router as session_router
from .core.config import settings
from .core.errors import CVBuilderError
from .core.logging_config import setup_logging

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="CV Builder API",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

app.include_router(session_router)
app.include_router(conversation_router)
app.include_router(pdf_router)


@app.exception_handler(CVBuilderError)
def handle_cv_builder_error(request: Request, exc: CVBuilderError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.client_message})


@app.exception_handler(RequestValidationError)
def handle_validation_error(request: Request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(p) for p in err.get("loc", ())[1:]), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "Invalid request", "details": details})


@app.exception_handler(StarletteHTTPException)
def handle_http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.get("/api")
def api_index():
    return {
        "status": "ok",
        "message": "CV Builder API is running",
        "version": app.version,
        "endpoints": [
            "/api/session",
            "/api/conversation/start",
            "/api/conversation/message",
            "/api/session/{sessionId}/messages",
            "/api/generate-pdf",
        ],
    }


@app.get("/health")
def health_check():
    return {"status": "ok"}
