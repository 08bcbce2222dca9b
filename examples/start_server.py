"""
Tab Grouper Server Entry Point

Starts the FastAPI server for the tab grouping service.

Usage:
    python examples/start_server.py
"""

import sys
from pathlib import Path

# Add src to path so we can import tab_grouper
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tab_grouper.config import get_settings, setup_logging

def main():
    """Start the FastAPI server."""

    print("=" * 80)
    print("Tab Grouper Server")
    print("=" * 80)
    print()

    settings = get_settings()
    setup_logging(settings.log_level)
    print("✓ Configuration loaded")
    print(f"  - Default mode: {settings.default_mode}")
    print(f"  - Embedding Model: {settings.openai_embedding_model}")
    if not settings.openai_api_key:
        print("  - OPENAI_API_KEY not set: requests without embeddings use domain grouping")
    print()

    # Start server
    print("Starting FastAPI server...")
    print(f"Server will be available at: http://localhost:8000")
    print(f"API documentation: http://localhost:8000/docs")
    print()
    print("Press Ctrl+C to stop the server")
    print("=" * 80)
    print()

    import uvicorn
    from tab_grouper.server.app import app

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level=settings.log_level.lower(),
        reload=False,  # Set to True for development
    )


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n\nServer stopped by user")
        sys.exit(0)
    except Exception as e:
        print(f"\n\n✗ Server error: {e}")
        sys.exit(1)
