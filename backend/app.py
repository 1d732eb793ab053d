from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parents[1]


def _wants_eventlet() -> bool:
    mode = os.environ.get("SOCKETIO_ASYNC_MODE", "").strip()
    if mode:
        return mode == "eventlet"
    # Mirrors the default chosen in create_app().
    return not sys.platform.startswith("win") and sys.version_info < (3, 13)


def _env_flag(name: str, default: bool) -> bool:
    return os.environ.get(name, "1" if default else "0") == "1"


def main() -> None:
    load_dotenv(ROOT / ".env")

    # Must happen before Flask/SocketIO import any blocking primitives.
    if _wants_eventlet():
        import eventlet

        eventlet.monkey_patch()

    try:
        from backend.impostor.server import create_app
    except ImportError:  # pragma: no cover
        from impostor.server import create_app

    app, socketio = create_app()
    socketio.run(
        app,
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "3000")),
        debug=_env_flag("FLASK_DEBUG", False),
        use_reloader=_env_flag("FLASK_USE_RELOADER", False),
        allow_unsafe_werkzeug=_env_flag("ALLOW_UNSAFE_WERKZEUG", True),
    )


if __name__ == "__main__":
    main()
