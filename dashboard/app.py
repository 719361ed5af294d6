"""FastAPI backend for the MetaTest dashboard."""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dashboard.api import router as api_v1_router

logger = logging.getLogger(__name__)

app = FastAPI(title="MetaTest Dashboard", version="0.1.0")

app.include_router(api_v1_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health")
async def health():
    return {"status": "healthy", "time": datetime.now(timezone.utc).isoformat()}
