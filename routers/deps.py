from fastapi import Request

from backend import RedisBackend
from realtime.relay import EventRelay


def get_relay(request: Request) -> EventRelay:
    return request.app.state.relay


def get_backend(request: Request) -> RedisBackend:
    return request.app.state.backend
