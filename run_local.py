#!/usr/bin/env python3
"""
Local development runner for the TVDom Resource API.

Uses whatever DATABASE_URL / REDIS_URL the environment provides; without
Redis the cache layer stays disabled and every read goes to the database.
"""

import uvicorn


def main():
    """Run the application locally"""
    print("🚀 Starting TVDom API")
    print("📖 API docs will be available at: http://localhost:8000/docs")
    print("-" * 50)

    uvicorn.run(
        "tvdom.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,  # Auto-reload on code changes
        log_level="info",
    )


if __name__ == "__main__":
    main()
