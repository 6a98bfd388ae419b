"""SalonScope FastAPI application.

Scores a posted CRM snapshot for the admin dashboard: client IVK and
status, no-show risk, smart segments, LTV.

Usage:
    uvicorn salonscope.app.main:app --host 0.0.0.0 --port 8001 --reload
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from salonscope.app.config import settings
from salonscope.app.routers import clients, ltv, noshow, segments

app = FastAPI(
    title="SalonScope API",
    description="Client scoring, no-show risk and segmentation for the salon back office",
    version="1.0.0",
)

# CORS: allow the admin dev server to call the API
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount routers
app.include_router(clients.router, prefix=settings.api_prefix)
app.include_router(noshow.router, prefix=settings.api_prefix)
app.include_router(segments.router, prefix=settings.api_prefix)
app.include_router(ltv.router, prefix=settings.api_prefix)


@app.get("/")
def root():
    return {"status": "ok", "app": "SalonScope API", "docs": "/docs"}


@app.get("/health")
def health():
    return {"status": "healthy"}
