def success_response(data=None, message: str | None = None) -> dict:
    """Standard envelope: {success, message?, data?}"""
    body = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def error_body(message: str, errors=None, detail: str | None = None) -> dict:
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    if detail:
        body["error"] = detail
    return body
