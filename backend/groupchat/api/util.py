from fastapi import Request


def extract_client_ip(request: Request) -> str:
    # Respect common proxy/CDN headers first
    headers = request.headers
    # Cloudflare
    ip = headers.get("cf-connecting-ip")
    if ip:
        return ip.strip()
    # Standard reverse proxy header (may contain a list)
    xff = headers.get("x-forwarded-for")
    if xff:
        # Leftmost entry is the client
        return xff.split(",")[0].strip()
    # Nginx/Heroku style
    ip = headers.get("x-real-ip")
    if ip:
        return ip.strip()
    # Fallback to connection peer
    return (request.client and request.client.host) or "unknown"


def extract_device_name(request: Request, declared: str | None = None) -> str:
    if declared and declared.strip():
        return declared.strip()
    return request.headers.get("user-agent") or "unknown"
