"""Trade reconstruction routes."""

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger

from reconstruction.config import Settings
from reconstruction.dependencies import get_settings
from reconstruction.errors import UnsupportedBrokerError
from reconstruction.schemas import ReconstructionResponse, ReconstructRequest
from reconstruction.services.reconstruction_service import (
    EmptyInputError,
    TooManyRowsError,
    run_reconstruction,
    to_response,
)

router = APIRouter()


@router.post("/api/trades/reconstruct", response_model=ReconstructionResponse)
async def reconstruct_trades(
    request: ReconstructRequest,
    settings: Settings = Depends(get_settings),
):
    """Reconstruct trades from a broker export already split into rows."""
    try:
        result = run_reconstruction(
            settings,
            request.rows,
            broker=request.broker,
            account=request.account,
            rollup=request.rollup,
        )
    except EmptyInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TooManyRowsError as e:
        raise HTTPException(status_code=413, detail=str(e))
    except UnsupportedBrokerError as e:
        logger.warning(f"Rejected export: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    return to_response(result)
