from fastapi import APIRouter

# Webhooks
from .webhooks_crisp import router as webhooks_crisp_router

# Crisp proxy endpoints
from .conversations import router as conversations_router

api_router = APIRouter()

# ========== Webhooks ============================
api_router.include_router(webhooks_crisp_router, prefix="/webhooks/crisp", tags=["webhooks"])

# ========== Crisp ===============================
api_router.include_router(conversations_router, prefix="/crisp", tags=["crisp"])
