# file: crisp_relay/api/deps.py

from fastapi import Request

from crisp_relay.services.crisp_service import CrispClient
from crisp_relay.services.debounce_engine import DebounceEngine


def get_engine(request: Request) -> DebounceEngine:
    return request.app.state.engine


def get_crisp_client(request: Request) -> CrispClient:
    return request.app.state.crisp_client
