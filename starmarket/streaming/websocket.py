"""
Pure asyncio WebSocket server (no threading).
Pushes engine events to every client and accepts trade commands.
"""
import asyncio
import json
import websockets
from typing import Set
import logging

from ..core.errors import TradeError
from ..core.types import (
    EngineEvent, NewsEvent, NewsRecord, RunEndedEvent, TickEvent,
    TradeEvent, TradeRecord
)
from ..time_engine import AsyncTickDriver

logger = logging.getLogger(__name__)

class AsyncWebSocketServer:
    """
    WebSocket server for a running simulation.

    Stream Flow:
    1. The driver forwards engine events into its BoundedEventStream
    2. Each client connection gets its own subscription and bridge task
    3. Messages are serialized and sent directly to the WebSocket
    4. Client trade commands are executed through the driver
    """

    def __init__(
        self,
        driver: AsyncTickDriver,
        host: str = 'localhost',
        port: int = 8765
    ):
        self.driver = driver
        self.host = host
        self.port = port

        # Client management
        self.clients: Set = set()

        # Stats
        self.total_connections = 0
        self.messages_sent = 0

        logger.info(f"WebSocket server initialized on {host}:{port}")

    # ========================================================================
    # CONNECTION HANDLER
    # ========================================================================

    async def handler(self, websocket):
        """Handle individual client connection"""
        client_id = f"{websocket.remote_address[0]}:{websocket.remote_address[1]}"
        logger.info(f"Client connected: {client_id}")

        self.clients.add(websocket)
        self.total_connections += 1

        # Subscribe before the snapshot so no event falls in between
        queue = self.driver.stream.open_subscription()
        bridge_task = asyncio.create_task(self._bridge_events(websocket, queue, client_id))

        try:
            await websocket.send(json.dumps({
                'type': 'snapshot',
                'state': self.driver.simulation.snapshot()
            }))
            await self._handle_client_messages(websocket, client_id)
        except websockets.ConnectionClosed:
            logger.info(f"Client {client_id} disconnected")
        finally:
            bridge_task.cancel()
            self.driver.stream.close_subscription(queue)
            self.clients.discard(websocket)
            logger.info(f"Client cleaned up: {client_id}")

    async def _handle_client_messages(self, websocket, client_id: str):
        """Handle incoming messages from client"""
        async for message in websocket:
            try:
                data = json.loads(message)
            except json.JSONDecodeError:
                logger.error(f"Invalid JSON from client {client_id}")
                await websocket.send(json.dumps({'type': 'error', 'error': 'invalid_json'}))
                continue

            try:
                reply = self.process_command(data)
            except Exception as e:
                logger.error(f"Error processing message from {client_id}: {e}", exc_info=True)
                reply = {'type': 'error', 'error': 'internal_error'}
            await websocket.send(json.dumps(reply))

    def process_command(self, data: dict) -> dict:
        """Execute a client command and build the reply"""
        if not isinstance(data, dict) or data.get('type') != 'trade':
            return {'type': 'error', 'error': 'unknown_command'}

        action = data.get('action')
        security_id = data.get('security_id')
        quantity = data.get('quantity')

        if action == 'buy':
            command = self.driver.buy
        elif action == 'sell':
            command = self.driver.sell
        else:
            return {'type': 'error', 'error': 'unknown_action', 'action': action}

        try:
            record = command(security_id, quantity)
        except TradeError as e:
            return {
                'type': 'trade_response',
                'action': action,
                'success': False,
                'error': e.code,
                'detail': e.message
            }

        return {
            'type': 'trade_response',
            'action': action,
            'success': True,
            'trade': serialize_trade(record)
        }

    async def _bridge_events(self, websocket, queue: asyncio.Queue, client_id: str):
        """Bridge the event stream directly to the WebSocket client"""
        try:
            async for event in self.driver.stream.subscribe(queue):
                message = serialize_event(event)
                if message is None:
                    continue
                try:
                    await websocket.send(message)
                    self.messages_sent += 1
                except websockets.ConnectionClosed:
                    logger.info(f"Client {client_id} disconnected during event bridge")
                    break
        except asyncio.CancelledError:
            logger.debug(f"Event bridge cancelled for client {client_id}")
        except Exception as e:
            logger.error(f"Event bridge error for client {client_id}: {e}", exc_info=True)

    # ========================================================================
    # SERVER CONTROL
    # ========================================================================

    async def start(self):
        """Start WebSocket server"""
        logger.info(f"Starting WebSocket server on {self.host}:{self.port}")

        async with websockets.serve(self.handler, self.host, self.port):
            logger.info("WebSocket server running")
            await asyncio.Future()  # Run forever

    async def shutdown(self):
        """Graceful shutdown"""
        logger.info("Shutting down WebSocket server...")
        close_tasks = [ws.close() for ws in self.clients]
        await asyncio.gather(*close_tasks, return_exceptions=True)
        self.clients.clear()
        logger.info("WebSocket server shutdown complete")

    def get_stats(self) -> dict:
        """Get server statistics"""
        return {
            'active_clients': len(self.clients),
            'total_connections': self.total_connections,
            'messages_sent': self.messages_sent,
            'stream_stats': self.driver.stream.get_stats().__dict__
        }

# ============================================================================
# SERIALIZATION
# ============================================================================

def serialize_news(record: NewsRecord) -> dict:
    return {
        'tick': record.tick,
        'month': record.month,
        'month_name': record.month_name,
        'headline': record.headline,
        'anchor_id': record.anchor_id,
        'affected_security_ids': list(record.affected_security_ids),
        'direction': record.direction,
        'tier': record.tier,
        'forced': record.forced,
        'text': record.format()
    }

def serialize_trade(record: TradeRecord) -> dict:
    return {
        'tick': record.tick,
        'side': record.side.value,
        'security_id': record.security_id,
        'shares': record.shares,
        'price': record.price,
        'amount': record.amount,
        'cash_after': record.cash_after
    }

def serialize_event(event: EngineEvent):
    """Serialize an engine event to JSON (None for unknown types)"""
    if isinstance(event, TickEvent):
        state = event.clock
        return json.dumps({
            'type': 'tick',
            'tick': event.tick,
            'month': state.month_name,
            'ticks_left_in_month': state.ticks_left_in_month,
            'time_left': state.time_left_label,
            'net_worth': event.net_worth,
            'impacts_applied': event.impacts_applied
        })
    if isinstance(event, NewsEvent):
        return json.dumps({'type': 'news', **serialize_news(event.record)})
    if isinstance(event, TradeEvent):
        return json.dumps({'type': 'trade', **serialize_trade(event.record)})
    if isinstance(event, RunEndedEvent):
        summary = event.summary
        return json.dumps({
            'type': 'run_ended',
            'tick': event.tick,
            'final_net_worth': summary.final_net_worth,
            'starting_cash': summary.starting_cash,
            'profit_loss': summary.profit_loss
        })
    return None
