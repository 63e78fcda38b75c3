"""
FLASK APP - OTPVAULT HTTP SERVER
================================

Application factory for the passcode API.

- CORS enabled so a separate frontend can call the API
- One Session (secret store + reference list + token collection) per app,
  kept in ``app.extensions["otpvault"]``
- Routes live in backend/routes.py
"""

import logging
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from ..config import Config
from ..core.collection import TokenCollection
from ..core.logger import Logging, configure_logging
from ..database.db_manager import SecretStore
from ..database.keyfile import load_or_create_key
from ..database.refs import ReferenceList
from .routes import otp_bp
from .session import Session

logger = logging.getLogger(__name__)


def build_session(config: Config) -> Session:
    """Wire the sqlite secret store and JSON reference list from ``config``."""
    key = config.FERNET_KEY.encode("ascii") if config.FERNET_KEY else load_or_create_key(config.KEY_FILE)
    return Session(
        store=SecretStore(key, config.DATABASE),
        refs=ReferenceList(config.REFS_FILE),
        collection=TokenCollection(),
        log=Logging.to_logger(),
    )


def create_app(config: Optional[Config] = None, session: Optional[Session] = None) -> Flask:
    config = config if config is not None else Config()
    configure_logging(config.LOG_LEVEL)

    app = Flask(__name__)
    app.secret_key = config.SECRET_KEY
    CORS(app)

    if session is None:
        session = build_session(config)
        session.setup()
    app.extensions["otpvault"] = session

    app.register_blueprint(otp_bp)

    @app.errorhandler(HTTPException)
    def http_error(e):
        return jsonify({"errors": [e.description]}), e.code

    @app.route("/", methods=["GET"])
    def index():
        return jsonify({
            "service": "otpvault",
            "tokens": len(session.collection),
            "endpoints": sorted(str(rule) for rule in app.url_map.iter_rules() if rule.endpoint != "static"),
        })

    logger.info("otpvault app ready with %d tokens", len(session.collection))
    return app


if __name__ == "__main__":
    create_app().run(debug=True, host="127.0.0.1", port=5000)
