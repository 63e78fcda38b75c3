"""
OTPVAULT HTTP API - FLASK BLUEPRINT

Endpoints over the application session (all JSON, prefix /api).

EXAMPLES:
curl http://localhost:5000/api/passcodes
curl "http://localhost:5000/api/passcodes?filter=git"
curl -X POST http://localhost:5000/api/tokens/uri -H "Content-Type: application/json" \
     -d '{"uri": "otpauth://totp/Example:alice@google.com?secret=JBSWY3DPEHPK3PXP&issuer=Example"}'
"""

import time
from uuid import UUID

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import BadRequest, NotFound

from ..core.errors import UnknownTokenError
from ..core.token import Algorithm
from .scanner import StaticScanner

otp_bp = Blueprint("otp", __name__, url_prefix="/api")


def _session():
    return current_app.extensions["otpvault"]


def _token_id(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise NotFound(f"Unknown token '{value}'") from None


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadRequest("JSON object body required")
    return data


def _passcode_json(passcode) -> dict:
    return {
        "id": str(passcode.id),
        "issuer": passcode.issuer,
        "account": passcode.account,
        "code": passcode.text,
        "is_counter": passcode.is_counter,
    }


def _otp_json(otp) -> dict:
    token = otp.token
    return {
        "id": str(otp.id),
        "issuer": token.issuer,
        "account": token.account,
        "type": "hotp" if token.is_counter else "totp",
        "algorithm": token.algorithm.value,
        "digits": token.digits,
    }


def _errors_response(result):
    """404 when every error is an unknown id, 400 otherwise."""
    errors = result.errors
    status = 404 if all(isinstance(e, UnknownTokenError) for e in errors) else 400
    return jsonify({"errors": [str(e) for e in errors]}), status


def _passcodes_response(passcodes):
    return jsonify({"passcodes": [_passcode_json(p) for p in passcodes]})


@otp_bp.route("/passcodes", methods=["GET"])
def list_passcodes():
    """
    CURRENT PASSCODES (filtered, in display order)

      curl "http://localhost:5000/api/passcodes?filter=git"
    """
    session = _session()
    if "filter" in request.args:
        return _passcodes_response(session.update_filter_text(request.args["filter"]))
    return _passcodes_response(session.passcodes())


@otp_bp.route("/tick", methods=["POST"])
def tick():
    """
    REGENERATE TIME-BASED PASSCODES

      curl -X POST http://localhost:5000/api/tick -H "Content-Type: application/json" -d '{"time": 59}'

    "time" (unix seconds) defaults to now.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    now = data.get("time", time.time())
    if not isinstance(now, (int, float)) or isinstance(now, bool):
        raise BadRequest("time must be a number")
    return _passcodes_response(_session().update_time(now))


@otp_bp.route("/tokens", methods=["POST"])
def add_token():
    """
    ADD A TOKEN FROM FORM FIELDS

      curl -X POST http://localhost:5000/api/tokens -H "Content-Type: application/json" \
           -d '{"issuer": "GitHub", "account": "david", "key": "JBSWY3DPEHPK3PXP", "type": "totp"}'

    Optional: "algorithm" (SHA1/SHA256/SHA512), "digits".
    """
    data = _json_body()
    algorithm = Algorithm.parse(data.get("algorithm", "SHA1"))
    if algorithm is None:
        raise BadRequest("algorithm must be SHA1, SHA256 or SHA512")
    digits = data.get("digits", 6)
    if not isinstance(digits, int) or isinstance(digits, bool):
        raise BadRequest("digits must be an integer")
    result = _session().add_token(
        issuer=str(data.get("issuer", "")),
        account=str(data.get("account", "")),
        key=str(data.get("key", "")),
        type=str(data.get("type", "totp")).lower(),
        algorithm=algorithm,
        digits=digits,
    )
    if not result.is_valid:
        return _errors_response(result)
    return jsonify(_otp_json(result.value)), 201


@otp_bp.route("/tokens/uri", methods=["POST"])
def add_token_from_uri():
    """
    ADD A TOKEN FROM AN otpauth:// URI

      curl -X POST http://localhost:5000/api/tokens/uri -H "Content-Type: application/json" -d '{"uri": "otpauth://..."}'
    """
    uri = _json_body().get("uri")
    if not isinstance(uri, str) or not uri.strip():
        raise BadRequest("uri is required")
    result = _session().add_from_uri(uri.strip())
    if not result.is_valid:
        return _errors_response(result)
    return jsonify(_otp_json(result.value)), 201


@otp_bp.route("/tokens/scan", methods=["POST"])
def add_token_from_scan():
    """
    ADD A TOKEN FROM A QR SCAN RESULT

    Body: {"text": "<decoded QR payload>"}; an empty payload adds nothing (204).
    """
    text = _json_body().get("text")
    if text is not None and not isinstance(text, str):
        raise BadRequest("text must be a string")
    result = _session().scan(StaticScanner(text))
    if not result.is_valid:
        return _errors_response(result)
    if result.value is None:
        return "", 204
    return jsonify(_otp_json(result.value)), 201


@otp_bp.route("/tokens/<token_id>", methods=["PATCH"])
def edit_token(token_id):
    """
    RENAME A TOKEN

      curl -X PATCH http://localhost:5000/api/tokens/<id> -H "Content-Type: application/json" \
           -d '{"issuer": "New Issuer", "account": "New Account"}'
    """
    data = _json_body()
    session = _session()
    tid = _token_id(token_id)
    current = session.collection.lookup(tid)
    if current is None:
        raise NotFound(f"Unknown token '{token_id}'")
    result = session.edit_token(
        tid,
        issuer=str(data.get("issuer", current.token.issuer)),
        account=str(data.get("account", current.token.account)),
    )
    if not result.is_valid:
        return _errors_response(result)
    return jsonify(_otp_json(result.value))


@otp_bp.route("/tokens/<token_id>", methods=["DELETE"])
def delete_token(token_id):
    """DELETE A TOKEN (secret included); cannot be undone."""
    result = _session().delete([_token_id(token_id)])
    if not result.is_valid:
        return _errors_response(result)
    return "", 204


@otp_bp.route("/tokens/<token_id>/increment", methods=["POST"])
def increment_counter(token_id):
    """NEXT PASSCODE FOR A COUNTER-BASED (HOTP) TOKEN"""
    result = _session().increment_counter(_token_id(token_id))
    if not result.is_valid:
        return _errors_response(result)
    return jsonify(_passcode_json(result.value))


@otp_bp.route("/tokens/move", methods=["POST"])
def move_tokens():
    """
    REORDER TOKENS

      curl -X POST http://localhost:5000/api/tokens/move -H "Content-Type: application/json" \
           -d '{"source": [0], "destination": 2}'
    """
    data = _json_body()
    source = data.get("source")
    destination = data.get("destination")
    if not isinstance(source, list) or not all(isinstance(i, int) for i in source) or not isinstance(destination, int):
        raise BadRequest("source must be a list of offsets and destination an offset")
    result = _session().move(source, destination)
    if not result.is_valid:
        return _errors_response(result)
    return _passcodes_response(result.value)


@otp_bp.route("/tokens/<token_id>/uri", methods=["GET"])
def provisioning_uri(token_id):
    """otpauth URI for a held token (to move it to another authenticator)."""
    result = _session().provisioning_uri(_token_id(token_id))
    if not result.is_valid:
        return _errors_response(result)
    return jsonify({"id": token_id, "uri": result.value})


@otp_bp.route("/tokens/<token_id>/qr", methods=["GET"])
def qr_code(token_id):
    """QR code (PNG data URI) of the token's otpauth URI."""
    result = _session().qr_code(_token_id(token_id))
    if not result.is_valid:
        return _errors_response(result)
    return jsonify({"id": token_id, "qr_code": result.value})
