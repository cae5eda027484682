from fastapi import Request

DEFAULT_CLIENT_IP = "127.0.0.1"


def get_client_ip(request: Request) -> str:
    """
    Best-effort client address.

    First hop of X-Forwarded-For, then X-Real-IP, then the socket peer.
    Only trustworthy behind a proxy that overwrites these headers.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return DEFAULT_CLIENT_IP
