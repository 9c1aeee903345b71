import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Annotated, AsyncGenerator

from fastapi import Depends, FastAPI, HTTPException
from sqlalchemy.orm import sessionmaker

from api.dependencies import get_report_repository, get_transaction_repository
from config import config
from db.db import create_db_engine
from db.repositories import TaxReportRepository, TransactionRepository
from domain.engine import TaxEngine
from domain.matcher import InventoryError
from domain.report import TaxReport
from domain.snapshot import InventorySnapshot
from domain.strategies import CostBasisStrategy, UnsupportedStrategyError
from domain.transactions import Transaction

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI) -> AsyncGenerator[None, None]:
    engine = create_db_engine(config().db_file)
    fastapi_app.state.sessionmaker = sessionmaker(engine)
    yield
    engine.dispose()


app = FastAPI(lifespan=lifespan)


def _build_engine(strategy: CostBasisStrategy | None, year: int | None) -> TaxEngine:
    settings = config()
    try:
        return TaxEngine(
            strategy=strategy or settings.strategy,
            tax_rate=settings.tax_rate,
            reporting_year=year if year is not None else settings.reporting_year,
            allow_negative_inventory=settings.allow_negative_inventory,
        )
    except UnsupportedStrategyError as err:
        raise HTTPException(status_code=422, detail=str(err)) from err


@app.get("/transactions")
def list_transactions(
    tr: Annotated[TransactionRepository, Depends(get_transaction_repository)],
) -> list[Transaction]:
    return tr.list()


@app.post("/transactions", status_code=201)
def create_transactions(
    transactions: list[Transaction],
    tr: Annotated[TransactionRepository, Depends(get_transaction_repository)],
) -> list[Transaction]:
    return tr.create_many(transactions)


@app.post("/reports", status_code=201)
def create_report(
    tr: Annotated[TransactionRepository, Depends(get_transaction_repository)],
    rr: Annotated[TaxReportRepository, Depends(get_report_repository)],
    strategy: CostBasisStrategy | None = None,
    year: int | None = None,
) -> TaxReport:
    engine = _build_engine(strategy, year)
    try:
        report = engine.process(tr.list())
    except InventoryError as err:
        logger.warning("Report generation failed: %s", err)
        raise HTTPException(status_code=409, detail=str(err)) from err
    return rr.create(report)


@app.get("/reports")
def list_reports(rr: Annotated[TaxReportRepository, Depends(get_report_repository)]) -> list[TaxReport]:
    return rr.list()


@app.get("/snapshots")
def get_snapshot(
    as_of: date | datetime,
    tr: Annotated[TransactionRepository, Depends(get_transaction_repository)],
    strategy: CostBasisStrategy | None = None,
) -> InventorySnapshot:
    engine = _build_engine(strategy, None)
    try:
        return engine.snapshot_at(tr.list(), as_of)
    except InventoryError as err:
        raise HTTPException(status_code=409, detail=str(err)) from err
