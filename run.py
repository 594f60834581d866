#!/usr/bin/env python3
"""
Retail Banking Entry Point

Starts the FastAPI server with the configured storage backend.
"""

import sys

import uvicorn

from retail_banking.api import create_app
from retail_banking.config import get_config


if __name__ == "__main__":
    config = get_config()

    print("🏦 Starting Retail Banking API...")
    print(f"💾 Storage: {config.storage_type}")
    print(f"🌐 API available at: http://localhost:{config.api_port}")
    print(f"📚 Documentation at: http://localhost:{config.api_port}/docs")
    print()

    try:
        uvicorn.run(create_app(config), host=config.api_host, port=config.api_port)
    except KeyboardInterrupt:
        print("\n👋 Shutting down Retail Banking API...")
    except Exception as e:
        print(f"❌ Error starting server: {e}")
        sys.exit(1)
