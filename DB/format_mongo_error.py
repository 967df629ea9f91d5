from pymongo.errors import OperationFailure, PyMongoError


def format_mongo_error(e: Exception) -> str:
    """
    Extract detailed, human-readable MongoDB error information for logs.
    """
    if isinstance(e, OperationFailure):
        parts = []

        if e.code is not None:
            parts.append(f"code: {e.code}")

        code_name = (e.details or {}).get("codeName")
        if code_name:
            parts.append(f"codeName: {code_name}")

        errmsg = (e.details or {}).get("errmsg") or str(e)
        parts.append(f"message: {errmsg}")

        return " | ".join(parts)

    if isinstance(e, PyMongoError):
        return f"{type(e).__name__}: {e}"

    return str(e)
