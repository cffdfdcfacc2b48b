#!/usr/bin/env python3
# backend/run.py
"""
Local server runner.

Tables are created on startup in development and test environments;
other environments expect the schema to exist already.
"""
import os
from pathlib import Path

import uvicorn

from app.core.config import settings

if __name__ == "__main__":
    os.chdir(Path(__file__).parent)
    reload = settings.environment == "development"
    print(f"Starting API ({settings.environment}) at http://localhost:8000")
    print("API Docs: http://localhost:8000/docs")

    uvicorn.run(
        "app.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=reload,
        log_level="debug" if settings.debug else "info",
    )
