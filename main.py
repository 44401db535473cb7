import sys

import uvicorn

from stockaudit.core.config import settings


def run_http(port: int = 8000):
    """Run HTTP server"""
    print(f"Starting {settings.APP_NAME} on port {port}...")
    uvicorn.run(
        "stockaudit.main:app",
        host="0.0.0.0",
        port=port,
        reload=settings.DEBUG
    )


if __name__ == "__main__":
    port = int(sys.argv[1]) if len(sys.argv) > 1 else 8000
    run_http(port)
