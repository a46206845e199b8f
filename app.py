#!/usr/bin/env python3

"""
OptionRecon Web Application
Rebuilds option trades and their strategies from raw broker transaction exports
"""

import logging
import os

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from reconstruction.dependencies import settings
from reconstruction.routers import health, trades

# Configure logging
logger.add(
    os.path.join(settings.log_dir, "recon_{time}.log"),
    rotation="1 day",
    retention="7 days",
    level=settings.log_level,
)

# Engine modules log through the standard library
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

# Initialize FastAPI app
app = FastAPI(
    title="OptionRecon",
    description="Trade reconstruction and strategy classification for broker exports",
    version="1.0.0"
)

# Add CORS middleware for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(trades.router)


if __name__ == "__main__":
    logger.info("Starting OptionRecon on http://localhost:8000")
    uvicorn.run(
        "app:app",  # Use string import to enable reload
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower()
    )
