"""
Run the People API with uvicorn.
Run: python -m api (from repo root, with .env or env vars set).
"""

import uvicorn

from api.main import settings

if __name__ == "__main__":
    uvicorn.run("api.main:app", host=settings.host, port=settings.port)
