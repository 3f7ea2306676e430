import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import AsyncIterator, Awaitable, Callable

from fastapi import FastAPI, Request, Response

from .config import get_settings
from .database import create_all, engine
from .deps import get_booking_repo, get_clock, get_ledger, get_policy
from .domain.errors import BookingError
from .routers import bookings, offices
from .usecases import bookings as booking_usecase
from .utils.request_id import REQUEST_ID_HEADER, accept_request_id, bound_request_id

logger = logging.getLogger(__name__)


async def purge_once() -> int:
    return await booking_usecase.purge_expired_bookings(
        get_ledger(),
        get_booking_repo(),
        today=get_clock().today(),
        retention_days=get_policy().retention_days,
    )


async def purge_expired_periodically(interval_seconds: float) -> None:
    """Apply the retention period now and then once per interval until cancelled."""
    while True:
        try:
            removed = await purge_once()
            logger.info("retention purge removed %d bookings", removed)
        except BookingError as exc:
            logger.warning("retention purge failed (%s), retrying next interval", exc.code)
        await asyncio.sleep(interval_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await create_all(engine)
    interval_hours = get_settings().purge_interval_hours
    purger = asyncio.create_task(purge_expired_periodically(interval_hours * 3600)) if interval_hours > 0 else None
    try:
        yield
    finally:
        if purger is not None:
            purger.cancel()
            with suppress(asyncio.CancelledError):
                await purger
        await engine.dispose()


async def request_id_middleware(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    request_id = accept_request_id(request.headers.get(REQUEST_ID_HEADER))
    with bound_request_id(request_id):
        response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


app = FastAPI(title="Office Booker API", lifespan=lifespan)
app.middleware("http")(request_id_middleware)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(offices.router)
app.include_router(bookings.router)
