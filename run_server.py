#!/usr/bin/env python3
"""
Launch script for the Mars Panorama Detection backend.

Usage:
    python run_server.py [data_folder] [--port PORT] [--host HOST]

Examples:
    python run_server.py                      # Use default ./data/photos folder
    python run_server.py /path/to/exports     # Use custom folder
    python run_server.py --generate-sample    # Write sample exports, then serve them
"""

import argparse
import os
import sys
from pathlib import Path

# Add package to path
sys.path.insert(0, str(Path(__file__).parent))


def main():
    parser = argparse.ArgumentParser(description="Mars Panorama Detection Server")
    parser.add_argument(
        "data_folder",
        nargs="?",
        default="./data/photos",
        help="Path to folder containing CSV/JSON photo exports (default: ./data/photos)"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=8000,
        help="Port to run server on (default: 8000)"
    )
    parser.add_argument(
        "--host", "-H",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for all interfaces)"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Run in debug mode"
    )
    parser.add_argument(
        "--generate-sample",
        action="store_true",
        help="Write synthetic photo exports into the data folder before starting"
    )

    args = parser.parse_args()

    data_folder = Path(args.data_folder)

    if args.generate_sample:
        from marspano.utils.sample_data import generate_test_data_set
        files = generate_test_data_set(data_folder)
        print(f"Generated {len(files)} sample files in {data_folder}")

    print("Mars Panorama Detection Backend")
    print("=" * 40)
    print(f"Data folder: {data_folder.absolute()}")
    print(f"Server: http://{args.host}:{args.port}")
    print("=" * 40)

    if not data_folder.exists():
        print(f"\nWarning: Data folder does not exist: {data_folder}")
        print("You can set it later via POST /folder")

    # Configure data folder for FastAPI lifespan
    if data_folder.exists():
        os.environ["MARSPANO_DATA_FOLDER"] = str(data_folder)

    print("\nAPI Endpoints:")
    print("  GET  /                        - Health check")
    print("  GET  /health                  - Detailed health")
    print("  GET  /folder                  - Current folder info")
    print("  POST /folder                  - Set data folder")
    print("  GET  /api/v2/panoramas        - List detected panoramas")
    print("  GET  /api/v2/panoramas/{id}   - Get one panorama")
    print("\nStarting server...")

    import uvicorn

    uvicorn.run(
        "marspano.main:app",
        host=args.host,
        port=args.port,
        reload=args.debug,
        log_level="debug" if args.debug else "info",
    )


if __name__ == "__main__":
    main()
