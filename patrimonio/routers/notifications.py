from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from patrimonio.events import WriteRejected, error_channel, stream_events
from patrimonio.models.user import User
from patrimonio.routers.auth import require_user

router = APIRouter(prefix="/api", tags=["notifications"])


@router.get("/notifications/errors", response_model=list[WriteRejected])
def write_errors(drain: bool = Query(False), user: User = Depends(require_user)):
    """Writes rejected by the store for this user, oldest first."""
    if drain:
        return error_channel.drain(user.id)
    return error_channel.recent(user.id)


@router.get("/events")
async def events(user: User = Depends(require_user)):
    return StreamingResponse(
        stream_events(user.id),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
