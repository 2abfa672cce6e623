# authcore/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from authcore.config import settings
from authcore.core.bootstrap import ensure_default_admin, ensure_default_roles
from authcore.core.db import close_db, init_db
from authcore.errors import AuthError
from authcore.services import build_auth_flow

from authcore.api.v1.routers import auth

logger = logging.getLogger("uvicorn.error")

app = FastAPI(title=settings.APP_NAME)

# CORS (with Cookie)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.to_dict()},
    )

@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    # Details stay in the server log; the caller only sees an opaque error
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": {"code": "INTERNAL_ERROR", "message": "Something went wrong"}},
    )

@app.on_event("startup")
async def on_startup():
    db = await init_db()
    flow = build_auth_flow(db, settings)
    # Roles must exist before anyone registers
    await ensure_default_roles(flow.store)
    await ensure_default_admin(flow.store, settings)
    app.state.auth_flow = flow

@app.on_event("shutdown")
async def on_shutdown():
    await close_db()

# REST
app.include_router(auth.router, prefix="/api/v1")

@app.get("/healthz")
def healthz():
    return {"ok": True}
