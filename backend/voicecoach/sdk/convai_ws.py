"""
Conversational-agent WebSocket client.

Speaks the hosted agent's JSON protocol: sends the initiation payload,
answers pings, and forwards every conversational message unchanged to the
session's ``on_message`` handler for classification. Audio frames are not
decoded here.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, Optional
from urllib.parse import urlencode

import httpx
import websockets

from core.config import CONVAI_API_URL, CONVAI_WS_URL, ELEVENLABS_API_KEY
from voicecoach.sdk.base import SDKEventHandlers
from voicecoach.session.config import SessionConfig

logger = logging.getLogger("convai_ws")

IGNORED_MESSAGE_TYPES = {"audio", "conversation_initiation_metadata", "pong"}


class ConvaiWebSocketClient:
    # The protocol carries no speaking flag; agent turns end by debounce.
    is_speaking: Optional[bool] = None

    def __init__(
        self,
        api_key: str = ELEVENLABS_API_KEY,
        ws_url: str = CONVAI_WS_URL,
        api_url: str = CONVAI_API_URL,
        connect: Optional[Callable[..., Any]] = None,
    ):
        self._api_key = str(api_key or "").strip()
        self._ws_url = ws_url
        self._api_url = api_url.rstrip("/")
        self._connect = connect or websockets.connect
        self._ws = None
        self._receive_task: Optional[asyncio.Task] = None

    @property
    def is_open(self) -> bool:
        return self._ws is not None

    async def get_signed_url(self, agent_id: str) -> str:
        async with httpx.AsyncClient(timeout=6.0) as client:
            response = await client.get(
                f"{self._api_url}/v1/convai/conversation/get_signed_url",
                params={"agent_id": agent_id},
                headers={"xi-api-key": self._api_key},
            )
            response.raise_for_status()
            signed_url = str((response.json() or {}).get("signed_url") or "").strip()
        if not signed_url:
            raise RuntimeError("signed url missing from response")
        return signed_url

    async def _resolve_url(self, config: SessionConfig) -> str:
        if self._api_key:
            return await self.get_signed_url(config.agent_id)
        return f"{self._ws_url}?{urlencode({'agent_id': config.agent_id})}"

    @staticmethod
    def initiation_payload(config: SessionConfig) -> dict:
        payload: dict[str, Any] = {
            "type": "conversation_initiation_client_data",
            "dynamic_variables": dict(config.dynamic_variables or {}),
        }
        if config.voice_id:
            payload["conversation_config_override"] = {"tts": {"voice_id": config.voice_id}}
        return payload

    async def start_session(self, config: SessionConfig, handlers: SDKEventHandlers) -> None:
        if self._ws is not None:
            raise RuntimeError("conversation already open")

        url = await self._resolve_url(config)
        ws = await self._connect(url, open_timeout=20, max_size=None)
        self._ws = ws

        try:
            await ws.send(json.dumps(self.initiation_payload(config)))
        except Exception:
            logger.exception("Conversation initiation failed; closing socket")
            self._ws = None
            await ws.close()
            raise
        logger.info(f"Conversation socket open | agent_id={config.agent_id}")

        handlers.on_connect()
        self._receive_task = asyncio.create_task(self._receive_loop(self._ws, handlers))

    async def _receive_loop(self, ws, handlers: SDKEventHandlers):
        try:
            async for message in ws:
                try:
                    data = json.loads(message)
                except (TypeError, ValueError):
                    logger.warning("Non-JSON frame ignored")
                    continue
                await self._dispatch(ws, data, handlers)
        except websockets.ConnectionClosedError as exc:
            logger.error(f"Conversation socket closed with error: {exc}")
            handlers.on_error(str(exc) or "Connection error")
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception("Conversation receive loop failed")
            handlers.on_error(str(exc) or "Connection error")
        finally:
            if self._ws is ws:
                self._ws = None
            handlers.on_disconnect()
            logger.info("Conversation receive loop terminated")

    async def _dispatch(self, ws, data: Any, handlers: SDKEventHandlers):
        if not isinstance(data, dict):
            return

        message_type = str(data.get("type") or "")
        if message_type == "ping":
            event = data.get("ping_event") if isinstance(data.get("ping_event"), dict) else {}
            await ws.send(json.dumps({"type": "pong", "event_id": event.get("event_id")}))
            return
        if message_type in IGNORED_MESSAGE_TYPES:
            return

        handlers.on_message(data)

    async def end_session(self) -> None:
        ws = self._ws
        task = self._receive_task
        self._receive_task = None
        if ws is None:
            return

        await ws.close()
        self._ws = None
        if task is not None:
            await task
