"""
Byte-store server routes.

Reads and writes the database blob at a configurable path. The path lives
in app config ("DB_PATH") and is not persisted across restarts.
"""

import threading
from datetime import datetime, timezone
from pathlib import Path

from flask import current_app, jsonify, request, Response

from models import utc_now
from repositories import FileByteStore
from . import bytestore_bp

_write_lock = threading.Lock()


def _current_path():
    return current_app.config.get("DB_PATH")


@bytestore_bp.route("/api/health")
def health():
    return jsonify({
        "status": "ok",
        "timestamp": utc_now(),
        "dbPath": _current_path(),
    })


@bytestore_bp.route("/api/db/path", methods=["GET"])
def get_path():
    path = _current_path()
    return jsonify({"path": path, "exists": path is not None})


@bytestore_bp.route("/api/db/path", methods=["POST"])
def set_path():
    data = request.get_json(silent=True) or {}
    raw = data.get("path")
    if not raw or not isinstance(raw, str):
        return jsonify({"error": "Path is required"}), 400

    normalized = str(Path(raw).expanduser().resolve())
    current_app.config["DB_PATH"] = normalized
    print(f"[ByteStore] Database path set to: {normalized}")
    return jsonify({"success": True, "path": normalized})


@bytestore_bp.route("/api/db/path", methods=["DELETE"])
def clear_path():
    current_app.config["DB_PATH"] = None
    print("[ByteStore] Database path cleared")
    return jsonify({"success": True})


@bytestore_bp.route("/api/db", methods=["GET"])
def read_db():
    path = _current_path()
    if not path:
        return jsonify({"error": "Database path not configured"}), 400

    if not Path(path).exists():
        return jsonify({"error": "Database file not found", "path": path}), 404

    data = Path(path).read_bytes()
    return Response(data, mimetype="application/octet-stream")


@bytestore_bp.route("/api/db", methods=["POST"])
def write_db():
    path = _current_path()
    if not path:
        return jsonify({"error": "Database path not configured"}), 400

    data = request.get_data()
    with _write_lock:
        FileByteStore(Path(path)).write(data)

    size = Path(path).stat().st_size
    print(f"[ByteStore] Database written to: {path} ({size} bytes)")
    return jsonify({"success": True, "path": path, "size": size})


@bytestore_bp.route("/api/db/info")
def db_info():
    path = _current_path()
    if not path:
        return jsonify({"configured": False, "path": None, "exists": False})

    target = Path(path)
    if not target.exists():
        return jsonify({"configured": True, "path": path, "exists": False})

    stats = target.stat()
    return jsonify({
        "configured": True,
        "path": path,
        "exists": True,
        "size": stats.st_size,
        "modified": datetime.fromtimestamp(stats.st_mtime, timezone.utc).isoformat(),
    })
