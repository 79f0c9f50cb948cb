from fastapi import APIRouter

router = APIRouter()


@router.get("/health")
def api_health() -> dict:
    return {"status": "ok"}
