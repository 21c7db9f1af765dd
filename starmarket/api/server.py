"""
FastAPI server exposing the simulation query and command surface.

Run with: uvicorn starmarket.api.server:app
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, StrictInt, StrictStr
from typing import List, Dict, Optional, Union
import asyncio
import logging

from ..core.config import SimulationConfig
from ..core.errors import RunEnded, TradeError, UnknownSecurity
from ..streaming.websocket import serialize_news, serialize_trade
from ..time_engine import AsyncTickDriver

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Star Market Simulation API")

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Current simulation
driver = AsyncTickDriver()
_loop_task: Optional[asyncio.Task] = None

# Pydantic models
class RunRequest(BaseModel):
    config: SimulationConfig = SimulationConfig()
    seed: Optional[int] = None
    auto_advance: bool = False
    speed_multiplier: float = 1.0

class TradeRequest(BaseModel):
    security_id: Optional[str] = None
    quantity: Union[StrictInt, StrictStr]

class TickResponse(BaseModel):
    tick: int
    month: str
    time_left: str
    net_worth: float
    news: List[Dict]
    status: str

ERROR_STATUS = {
    UnknownSecurity: 404,
    RunEnded: 409,
}

@app.exception_handler(TradeError)
async def trade_error_handler(request: Request, exc: TradeError):
    status_code = ERROR_STATUS.get(type(exc), 400)
    return JSONResponse(
        status_code=status_code,
        content={'error': exc.code, 'detail': exc.message}
    )

@app.get("/")
async def root():
    """API root"""
    return {
        "message": "Star Market Simulation API",
        "docs": "/docs",
        "health": "/health"
    }

@app.get("/health")
async def health():
    """Health check"""
    return {"status": "ok"}

# ============================================================================
# COMMANDS
# ============================================================================

@app.post("/api/run")
async def start_run(request: RunRequest):
    """Start a new run; optionally let the driver tick in the background"""
    global _loop_task

    if _loop_task is not None and not _loop_task.done():
        driver.stop()
        _loop_task.cancel()
    _loop_task = None

    driver.start_run(request.config, request.seed)
    logger.info(f"Run started via API (auto_advance={request.auto_advance})")

    if request.auto_advance:
        driver.set_speed(request.speed_multiplier)
        _loop_task = asyncio.create_task(driver.run())

    return driver.simulation.snapshot()

@app.post("/api/tick", response_model=TickResponse)
async def advance_tick():
    """Advance the simulation by one tick"""
    event = driver.advance_tick()
    return TickResponse(
        tick=event.tick,
        month=event.clock.month_name,
        time_left=event.clock.time_left_label,
        net_worth=event.net_worth,
        news=[serialize_news(record) for record in event.news],
        status=driver.simulation.status.value
    )

@app.post("/api/pause")
async def pause():
    driver.pause()
    return {"paused": True}

@app.post("/api/resume")
async def resume():
    driver.resume()
    return {"paused": False}

@app.post("/api/trade/buy")
async def buy(request: TradeRequest):
    """Buy shares (quantity may be "max")"""
    record = driver.buy(request.security_id, request.quantity)
    return serialize_trade(record)

@app.post("/api/trade/sell")
async def sell(request: TradeRequest):
    """Sell shares (quantity may be "all")"""
    record = driver.sell(request.security_id, request.quantity)
    return serialize_trade(record)

# ============================================================================
# QUERIES
# ============================================================================

@app.get("/api/state")
async def get_state():
    """Clock, securities, portfolio and final summary"""
    return driver.simulation.snapshot()

@app.get("/api/securities")
async def list_securities():
    return driver.simulation.security_rows()

@app.get("/api/securities/{security_id}")
async def get_security(security_id: str, history: Optional[int] = None):
    """Single security with its price history"""
    security = driver.simulation.get_security(security_id)
    return {
        **security.to_dict(),
        'history': [
            {'tick': point.tick, 'price': point.price}
            for point in security.get_history(history)
        ]
    }

@app.get("/api/portfolio")
async def get_portfolio():
    return driver.simulation.portfolio_snapshot()

@app.get("/api/net-worth")
async def get_net_worth():
    """Net-worth time series"""
    return [
        {'tick': tick, 'net_worth': value}
        for tick, value in driver.simulation.net_worth_series
    ]

@app.get("/api/news")
async def get_news(count: Optional[int] = None):
    return [serialize_news(record) for record in driver.simulation.news_feed(count)]

@app.get("/api/log")
async def get_market_log(count: Optional[int] = None):
    return [
        {'tick': entry.tick, 'level': entry.level.value, 'message': entry.message}
        for entry in driver.simulation.get_market_log(count)
    ]

@app.get("/api/stats")
async def get_stats():
    return {
        'simulation': driver.simulation.get_stats(),
        'driver': driver.get_stats().__dict__,
        'stream': driver.stream.get_stats().__dict__
    }
