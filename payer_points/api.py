import logging

from fastapi import FastAPI, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware

from .csv_source import parse_transactions
from .models import BalanceRequest, SpendRequest, SpendResponse
from .service import (
    PointsService, PointsServiceError, InsolvencyError,
)

logger = logging.getLogger("payer_points.api")

app = FastAPI(
    title="Payer Points API",
    description="Oldest-first point spending across sponsoring payers",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

points_service = PointsService()


@app.get("/health", tags=["System"])
def health_check():
    return {"status": "healthy", "service": "payer-points"}


@app.post("/spend", response_model=SpendResponse, tags=["Points"])
def spend_points(request: SpendRequest) -> SpendResponse:
    try:
        return points_service.process(request.transactions, request.points)
    except InsolvencyError as e:
        logger.error("Insolvent spend request: %s", e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except PointsServiceError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@app.post("/spend/csv", response_model=SpendResponse, tags=["Points"])
async def spend_points_csv(request: Request, points: int = Query(..., ge=0)) -> SpendResponse:
    try:
        body = (await request.body()).decode("utf-8")
    except UnicodeDecodeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail=f"Transaction CSV must be UTF-8 encoded: {e}")
    try:
        transactions = parse_transactions(body, strict=True)
        return points_service.process(transactions, points)
    except PointsServiceError as e:
        logger.error("Spend request failed: %s", e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@app.post("/balances", response_model=dict[str, int], tags=["Points"])
def get_balances(request: BalanceRequest) -> dict[str, int]:
    try:
        return points_service.get_balances(request.transactions)
    except InsolvencyError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
