# FILE: main.py
"""
ChainPad Backend - FastAPI Application

Features:
- Wallet login with 24h signed session tokens
- Contract file tree (shared folders, wallet-owned files)
- Solidity compilation (solc via py-solc-x)
- Deployment packaging and write-back (signing happens in the browser wallet)
- Chat assistant with compile/deploy/generate commands (OpenAI)

Run:
    uvicorn main:app --host 0.0.0.0 --port 5000
"""
import logging
import os
import time

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Load .env FIRST before any other imports that might need env vars
load_dotenv()

from chainpad import __version__
from chainpad.db import init_db
from chainpad.errors import ChainPadError
from chainpad.llm import is_llm_configured
from chainpad.settings import get_settings
from chainpad.auth.router import router as auth_router
from chainpad.contracts.router import router as contracts_router
from chainpad.chat.router import router as chat_router

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger("chainpad")

MAX_LOG_LINE = 80

app = FastAPI(
    title="ChainPad",
    version=__version__,
    description="Smart-contract IDE backend: file tree, compilation, deployment packaging and chat",
)

# ====== CORS ======

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ====== REQUEST LOGGING ======

@app.middleware("http")
async def log_api_requests(request: Request, call_next):
    """Log `METHOD path status in Nms` for /api/ routes only."""
    if not request.url.path.startswith("/api/"):
        return await call_next(request)

    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = int((time.perf_counter() - start) * 1000)

    line = f"{request.method} {request.url.path} {response.status_code} in {duration_ms}ms"
    if len(line) > MAX_LOG_LINE:
        line = line[: MAX_LOG_LINE - 1] + "…"
    logger.info(line)
    return response


# ====== ERROR HANDLERS ======

@app.exception_handler(ChainPadError)
async def handle_chainpad_error(request: Request, exc: ChainPadError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"Invalid {field}: {first.get('msg')}" if field else "Invalid request"
    return JSONResponse(
        status_code=400,
        content={"message": message, "details": [
            {"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors
        ]},
    )


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("[server] Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal Server Error"})


# ====== STARTUP ======

@app.on_event("startup")
def on_startup():
    os.makedirs("data", exist_ok=True)

    init_db()
    logger.info("[startup] Database ready: %s", settings.database_url)

    if settings.jwt_secret == "dev-secret":
        logger.warning("[startup] CHAINPAD_JWT_SECRET: [X] NOT SET - using development secret")
    else:
        logger.info("[startup] CHAINPAD_JWT_SECRET: [OK] set")

    if is_llm_configured():
        logger.info("[startup] OPENAI_API_KEY: [OK] set (enables chat + contract generation)")
    else:
        logger.warning("[startup] OPENAI_API_KEY: [X] NOT SET - chat and generation will fail")

    if settings.allow_header_wallet:
        logger.info("[startup] Wallet header auth: ENABLED (x-wallet-address trusted without token)")
    else:
        logger.info("[startup] Wallet header auth: DISABLED (session token required)")

    for network in sorted(settings.rpc_urls):
        logger.info("[startup] RPC verification enabled for %s", network)


# ====== ROUTERS ======

app.include_router(auth_router)
app.include_router(contracts_router)
app.include_router(chat_router)


# ====== PUBLIC ENDPOINTS ======

@app.get("/api/health")
def health():
    """Health check (public)."""
    return {"status": "ok", "version": __version__}
