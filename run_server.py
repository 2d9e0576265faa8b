#!/usr/bin/env python
"""
Server Entry Point

Starts the Sales Reports API.
Usage:
    Development:  python run_server.py --dev
    Production:   python run_server.py
"""

import argparse
import os


def run_dev_server():
    """Run development server with auto-reload."""
    import uvicorn

    uvicorn.run(
        "sales_reports.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=True,
        reload_dirs=["sales_reports"],
        log_level="debug",
        access_log=True,
    )


def run_prod_server():
    """Run production server with Uvicorn directly."""
    import uvicorn

    workers = int(os.getenv("WORKERS", 4))

    uvicorn.run(
        "sales_reports.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        workers=workers,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
        access_log=True,
        proxy_headers=True,
        forwarded_allow_ips="*",
        server_header=False,
        date_header=True,
    )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Sales Reports API Server")
    parser.add_argument(
        "--dev",
        action="store_true",
        help="Run in development mode with auto-reload"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to run on (default: 8000)"
    )

    args = parser.parse_args()

    if args.port:
        os.environ["PORT"] = str(args.port)

    if args.dev:
        print("🚀 Starting development server...")
        run_dev_server()
    else:
        print("🚀 Starting production server with Uvicorn...")
        run_prod_server()
