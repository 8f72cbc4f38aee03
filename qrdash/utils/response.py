from flask import jsonify


def api_response(success: bool, message: str, data: dict | None = None, **extra):
    # Always return status 200 with unified envelope; extra keys (e.g. a quota
    # warning) sit next to data
    body = {
        "success": success,
        "message": message,
        "data": data
    }
    body.update(extra)
    return jsonify(body), 200
