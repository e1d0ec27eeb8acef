"""Telegram Bot API transport (long polling) for the conversation state machine.

Only the handful of Bot API methods the bot needs are wrapped:
getUpdates, sendMessage, sendDocument, getFile and the file download endpoint.
"""

from __future__ import annotations

import json
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

import httpx

from .session import SessionStore
from .state_machine import Attachment, ConversationStateMachine, InboundEvent, OutboundMessage


logger = logging.getLogger(__name__)

API_ROOT = "https://api.telegram.org"
MAX_MESSAGE_LENGTH = 4000

_MIME_BY_SUFFIX = {
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".pdf": "application/pdf",
}


class TelegramError(RuntimeError):
    pass


def chunk_text(text: str, size: int = MAX_MESSAGE_LENGTH) -> List[str]:
    if not text:
        return []
    return [text[i:i + size] for i in range(0, len(text), size)]


def reply_keyboard(rows: List[List[str]]) -> Dict[str, Any]:
    return {
        "keyboard": [[{"text": label} for label in row] for row in rows],
        "resize_keyboard": True,
        "one_time_keyboard": False,
    }


class TelegramClient:
    def __init__(
        self,
        token: str,
        *,
        timeout: float = 30.0,
        api_root: str = API_ROOT,
        client: Optional[httpx.Client] = None,
    ) -> None:
        if not token:
            raise TelegramError("Missing Telegram bot token. Set TELEGRAM_BOT_TOKEN.")
        self.token = token
        self.api_root = api_root.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def _call(self, method: str, *, data: Optional[Dict[str, Any]] = None, files=None, timeout: Optional[float] = None) -> Any:
        url = f"{self.api_root}/bot{self.token}/{method}"
        kwargs: Dict[str, Any] = {}
        if timeout is not None:
            kwargs["timeout"] = timeout
        if files is not None:
            resp = self._client.post(url, data=data or {}, files=files, **kwargs)
        else:
            resp = self._client.post(url, json=data or {}, **kwargs)
        try:
            payload = resp.json()
        except ValueError as exc:
            raise TelegramError(f"{method}: invalid response (HTTP {resp.status_code})") from exc
        if not payload.get("ok"):
            raise TelegramError(f"{method}: {payload.get('description') or resp.status_code}")
        return payload.get("result")

    def get_updates(self, offset: Optional[int], poll_timeout: int) -> List[Dict[str, Any]]:
        data: Dict[str, Any] = {"timeout": poll_timeout, "allowed_updates": ["message"]}
        if offset is not None:
            data["offset"] = offset
        return self._call("getUpdates", data=data, timeout=poll_timeout + 10) or []

    def send_message(self, chat_id: int, text: str, keyboard: Optional[List[List[str]]] = None) -> None:
        data: Dict[str, Any] = {"chat_id": chat_id, "text": text}
        if keyboard:
            data["reply_markup"] = reply_keyboard(keyboard)
        self._call("sendMessage", data=data)

    def send_document(self, chat_id: int, content: bytes, file_name: str, caption: Optional[str] = None) -> None:
        data: Dict[str, Any] = {"chat_id": str(chat_id)}
        if caption:
            data["caption"] = caption
        self._call("sendDocument", data=data, files={"document": (file_name, content)})

    def download_file(self, file_id: str) -> bytes:
        info = self._call("getFile", data={"file_id": file_id})
        file_path = (info or {}).get("file_path")
        if not file_path:
            raise TelegramError(f"getFile returned no path for {file_id}")
        resp = self._client.get(f"{self.api_root}/file/bot{self.token}/{file_path}")
        resp.raise_for_status()
        return resp.content


class TelegramBot:
    """Long-poll loop: Telegram updates -> InboundEvent -> state machine."""

    def __init__(
        self,
        client: TelegramClient,
        *,
        sessions: Optional[SessionStore] = None,
        machine: Optional[ConversationStateMachine] = None,
        poll_timeout: int = 25,
        workers: int = 4,
    ) -> None:
        self.client = client
        self.machine = machine or ConversationStateMachine(sessions or SessionStore(), self.deliver)
        self.poll_timeout = poll_timeout
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="tg-update")
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._offset: Optional[int] = None

    # --- Outbound ---
    def deliver(self, chat_id: int, message: OutboundMessage) -> None:
        try:
            if message.is_document:
                self.client.send_document(chat_id, message.document or b"", message.file_name or "file", message.caption)
                return
            parts = chunk_text(message.text or "")
            for i, part in enumerate(parts):
                # keyboard goes with the last chunk
                keyboard = message.keyboard if i == len(parts) - 1 else None
                self.client.send_message(chat_id, part, keyboard)
        except (httpx.HTTPError, TelegramError) as exc:
            logger.error("Failed to deliver message to chat %s: %s", chat_id, exc)

    # --- Inbound ---
    def to_event(self, update: Dict[str, Any]) -> Optional[InboundEvent]:
        message = update.get("message")
        if not message:
            return None
        chat_id = (message.get("chat") or {}).get("id")
        if chat_id is None:
            return None
        document = None
        doc = message.get("document")
        if doc and doc.get("file_id"):
            file_id = doc["file_id"]
            file_name = doc.get("file_name")
            mime = doc.get("mime_type") or self._guess_mime(file_name)
            document = Attachment(file_name=file_name, mime_type=mime, fetch=lambda: self.client.download_file(file_id))
        return InboundEvent(chat_id=int(chat_id), text=message.get("text") or message.get("caption"), document=document)

    @staticmethod
    def _guess_mime(file_name: Optional[str]) -> Optional[str]:
        name = (file_name or "").lower()
        for suffix, mime in _MIME_BY_SUFFIX.items():
            if name.endswith(suffix):
                return mime
        return None

    def _handle(self, event: InboundEvent) -> None:
        try:
            self.machine.handle(event)
        except Exception:
            logger.exception("Unhandled error while processing event for chat %s", event.chat_id)

    def poll_once(self) -> int:
        updates = self.client.get_updates(self._offset, self.poll_timeout)
        for update in updates:
            update_id = update.get("update_id")
            if isinstance(update_id, int):
                self._offset = update_id + 1
            event = self.to_event(update)
            if event is not None:
                self._executor.submit(self._handle, event)
        return len(updates)

    def run_forever(self) -> None:
        logger.info("Telegram bot polling started")
        while not self._stop.is_set():
            try:
                self.poll_once()
            except (httpx.HTTPError, TelegramError, json.JSONDecodeError) as exc:
                logger.warning("Polling failed: %s", exc)
                self._stop.wait(3.0)
        logger.info("Telegram bot polling stopped")

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self.run_forever, name="tg-poller", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self.poll_timeout + 15)
            self._thread = None
        self._executor.shutdown(wait=False)
        self.client.close()


def build_bot(settings) -> TelegramBot:
    client = TelegramClient(settings.telegram_token, timeout=float(settings.telegram_poll_timeout) + 10.0)
    return TelegramBot(client, poll_timeout=settings.telegram_poll_timeout, workers=settings.telegram_workers)
