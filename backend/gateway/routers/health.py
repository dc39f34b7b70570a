from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..dependencies import get_nlu_state
from ..nlu import NLUClientState
from ..utils import now_iso

router = APIRouter()


@router.get("/health")
def health(state: NLUClientState = Depends(get_nlu_state)) -> JSONResponse:
    """Liveness plus the chatbot client's initialization state."""
    return JSONResponse(content={
        "status": "ok",
        "chatbot": state.describe(),
        "timestamp": now_iso(),
    })
