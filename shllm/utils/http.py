import httpx


def safe_http_error_message(r: httpx.Response) -> str:
    try:
        j = r.json()
    except ValueError:
        return r.text[:300]
    if isinstance(j, dict):
        err = j.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])[:300]
        if j.get("message"):
            return str(j["message"])[:300]
    return str(j)[:300]
