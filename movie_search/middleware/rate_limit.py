from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
import time
from ..config import get_settings
from typing import Dict, Optional, Tuple
import asyncio

WINDOW_SECONDS = 15 * 60


class RateLimiter:
    def __init__(self, limit: Optional[int] = None, window: int = WINDOW_SECONDS):
        self.limit = limit or get_settings().RATE_LIMIT_MAX_REQUESTS
        self.window = window
        self.requests: Dict[str, Tuple[int, float]] = {}  # IP: (count, start_time)
        self._cleanup_task = None

    async def cleanup(self):
        while True:
            self.prune(time.time())
            await asyncio.sleep(self.window)

    def prune(self, current_time: float):
        self.requests = {
            ip: (count, start_time)
            for ip, (count, start_time) in self.requests.items()
            if current_time - start_time < self.window
        }

    async def start_cleanup(self):
        if self._cleanup_task is None:
            self._cleanup_task = asyncio.create_task(self.cleanup())

    async def stop_cleanup(self):
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None

    def hit(self, client_ip: str, current_time: float):
        if client_ip in self.requests:
            count, start_time = self.requests[client_ip]
            # Reset once the window has passed
            if current_time - start_time >= self.window:
                self.requests[client_ip] = (1, current_time)
            else:
                if count >= self.limit:
                    raise HTTPException(
                        status_code=429,
                        detail="Too many requests from this IP, please try again later."
                    )
                self.requests[client_ip] = (count + 1, start_time)
        else:
            self.requests[client_ip] = (1, current_time)

    async def check_rate_limit(self, request: Request):
        client_ip = request.client.host if request.client else "unknown"
        await self.start_cleanup()
        self.hit(client_ip, time.time())


async def rate_limit_middleware(request: Request, call_next):
    if not request.url.path.startswith("/api/"):
        return await call_next(request)
    limiter = request.app.state.rate_limiter
    try:
        await limiter.check_rate_limit(request)
    except HTTPException as exc:
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail}
        )
    return await call_next(request)
