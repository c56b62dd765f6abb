from fastapi import APIRouter

router = APIRouter(prefix="/utils", tags=["utils"])


@router.get("/liveness/")
async def liveness() -> bool:
    """
    Liveness probe. No I/O; the evaluator holds no external dependencies.
    """
    return True
