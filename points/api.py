import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, settings
from .errors import GameEventRejected, SeasonNotFound, SourceUnavailable
from .logging_config import setup_logging
from .maintenance import start_maintenance, stop_maintenance
from .models import (
    Balance, GameEventRequest, GameEventResponse, LeaderboardResponse,
    LedgerHistoryResponse, ReconcileRequest, ReconcileResponse, RejectionReason, Season,
)
from .rpc import SolanaRpcSource
from .service import PointsService

logger = logging.getLogger(__name__)

THROTTLE_REASONS = (RejectionReason.TOO_FAST, RejectionReason.RATE_LIMITED)


def build_service(config: Settings) -> PointsService:
    source = SolanaRpcSource(config.RPC_URL, timeout=config.RPC_TIMEOUT)
    return PointsService(source, config.deposit_policy(), config.game_policy())


def create_app(points_service: Optional[PointsService] = None, config: Settings = settings) -> FastAPI:
    service = points_service or build_service(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        task = start_maintenance(
            service.storage,
            config.retention,
            config.game_policy().rate_window,
            interval=config.MAINTENANCE_INTERVAL_SECONDS,
            clock=service.clock,
        )
        logger.info("%s started, collecting deposits on %s", config.SERVICE_NAME, service.deposits.policy.system_address)
        try:
            yield
        finally:
            await stop_maintenance(task)
            close = getattr(service.deposits.source, "close", None)
            if close:
                close()

    app = FastAPI(
        title="Solspace Points API",
        description="Deposit reconciliation, game event points and seasonal leaderboards",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", tags=["System"])
    def root():
        return {"ok": True, "service": config.SERVICE_NAME}

    @app.get("/status", tags=["System"])
    def service_status():
        return {"ok": True, "service": config.SERVICE_NAME, "status": "running"}

    @app.get("/health", tags=["System"])
    def health_check():
        return {"status": "healthy", "service": config.SERVICE_NAME}

    @app.post("/deposits/reconcile", response_model=ReconcileResponse, tags=["Deposits"])
    def reconcile_deposit(request: ReconcileRequest) -> ReconcileResponse:
        try:
            return service.reconcile_deposit(request.wallet)
        except SourceUnavailable as e:
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    @app.post("/games/events", response_model=GameEventResponse, status_code=status.HTTP_201_CREATED, tags=["Games"])
    def submit_game_event(request: GameEventRequest) -> GameEventResponse:
        try:
            return service.submit_game_event(request.wallet, request.profit, request.volume)
        except GameEventRejected as e:
            code = status.HTTP_429_TOO_MANY_REQUESTS if e.reason in THROTTLE_REASONS else status.HTTP_400_BAD_REQUEST
            raise HTTPException(status_code=code, detail={"reason": e.reason.value, "message": e.message})

    @app.get("/leaderboard", response_model=LeaderboardResponse, tags=["Leaderboard"])
    def get_leaderboard(window: str = "48h") -> LeaderboardResponse:
        return service.get_leaderboard(window)

    @app.get("/leaderboard/final", response_model=LeaderboardResponse, tags=["Leaderboard"])
    def get_final_leaderboard(season: Optional[str] = None) -> LeaderboardResponse:
        try:
            return service.get_final_leaderboard(season)
        except SeasonNotFound as e:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    @app.get("/seasons/current", response_model=Season, tags=["Leaderboard"])
    def get_current_season() -> Season:
        return service.get_season()

    @app.get("/users/{wallet}/balance", response_model=Balance, tags=["Users"])
    def get_user_balance(wallet: str) -> Balance:
        return service.get_balance(wallet)

    @app.get("/users/{wallet}/ledger", response_model=LedgerHistoryResponse, tags=["Users"])
    def get_user_ledger(wallet: str, limit: int = 50, offset: int = 0) -> LedgerHistoryResponse:
        return service.get_ledger_history(wallet, limit, offset)

    app.state.points_service = service
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    setup_logging(settings.LOG_LEVEL, settings.LOG_DIR)
    uvicorn.run(app, host="0.0.0.0", port=8000)
