"""Entry point for the PDF to XML server."""

import argparse
import os

import uvicorn


def main():
    parser = argparse.ArgumentParser(description="PDF to XML conversion server")
    parser.add_argument(
        "--storage",
        choices=["memory", "postgres", "documents"],
        default=None,
        help="Storage backend (default: memory). Overrides STORAGE_BACKEND env var.",
    )
    parser.add_argument(
        "--migrations-dir",
        default=None,
        help="Apply *.up.sql migrations from this directory on startup (postgres only).",
    )
    parser.add_argument("--host", default="0.0.0.0", help="Bind host (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    args = parser.parse_args()

    if args.storage:
        os.environ["STORAGE_BACKEND"] = args.storage
    if args.migrations_dir:
        os.environ["MIGRATIONS_DIR"] = args.migrations_dir

    from pdf_xml_server.server import app

    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
