#!/usr/bin/env python3
"""
Development Workflow Tracker - web servers.

Two Flask apps:
    bytestore  - persistence target holding the database blob (port 3001)
    workflow   - JSON API over the answer store and navigator (port 5001)

Usage:
    python app.py               # workflow API
    python app.py --bytestore   # byte-store server
"""

import argparse

from flask import Flask

from config import SERVER_HOST, SERVER_PORT, WEB_PORT
from repositories import AnswerStore
from routes import bytestore_bp, workflow_bp
from workflow import FlowNavigator


def create_bytestore_app(db_path: str = None) -> Flask:
    """Byte-store server. db_path presets the configured location."""
    app = Flask(__name__)
    app.config["DB_PATH"] = db_path
    app.register_blueprint(bytestore_bp)
    return app


def create_app(store: AnswerStore = None, navigator: FlowNavigator = None) -> Flask:
    """Workflow API. Without a store one is created from config on first request."""
    app = Flask(__name__)
    if navigator is not None and store is None:
        store = navigator.store
    app.extensions["devflow"] = {"store": store, "navigator": navigator}
    app.register_blueprint(workflow_bp)

    @app.route("/api/ping")
    def ping():
        return {"status": "ok"}

    return app


app = create_app()


def main():
    parser = argparse.ArgumentParser(description="Development workflow tracker servers")
    parser.add_argument("--bytestore", action="store_true", help="Run the byte-store server")
    parser.add_argument("--db-path", help="Initial database path for the byte-store server")
    parser.add_argument("--host", default=SERVER_HOST)
    parser.add_argument("--port", type=int)
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()

    if args.bytestore:
        server = create_bytestore_app(args.db_path)
        port = args.port or SERVER_PORT
        print(f"[ByteStore] Running on http://{args.host}:{port}")
    else:
        server = app
        port = args.port or WEB_PORT
        print(f"[Workflow] API on http://{args.host}:{port}")

    server.run(host=args.host, port=port, debug=args.debug, threaded=True)


if __name__ == "__main__":
    main()
