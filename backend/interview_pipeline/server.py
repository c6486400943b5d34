from __future__ import annotations

import argparse
import os

import uvicorn


def main() -> None:
    parser = argparse.ArgumentParser(description="Interview Pipeline API server")
    parser.add_argument("--host", default=os.getenv("APP_HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(os.getenv("APP_PORT", "8000")))
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    args = parser.parse_args()

    uvicorn.run(
        "interview_pipeline.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=os.getenv("UVICORN_LOG_LEVEL", "info"),
    )


if __name__ == "__main__":
    main()
