"""Conversation flow of the chat bot.

The machine is transport-agnostic: it consumes ``InboundEvent`` objects and
emits ``OutboundMessage`` objects through the injected ``send`` callable.
Session transitions of one chat identity are serialised; the long actions
(crawl, file processing) run after the session lock is released, with the
session already back in IDLE.

Flows (all return to IDLE when finished or cancelled with /menu):

- crawl:       IDLE -> SELECTING_OUTPUT_FORMAT -> SELECTING_DISTRICTS -> IDLE
- land plots:  IDLE -> AWAITING_SPREADSHEET -> IDLE
- pdf images:  IDLE -> AWAITING_PDF -> IDLE
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Callable, List, Optional, Set

from app.services.crawl.base import CrawlError, District, InstitutionRecord, district_names_from_codes
from app.services.crawl.orchestrator import CrawlOrchestrator
from app.services.institution_service import format_institutions_text, generate_excel, get_orchestrator
from app.services.land_plot_service import format_land_plots_text, upload_land_plots
from app.services.pdf_image_service import extract_images

from .session import Phase, Session, SessionStore


logger = logging.getLogger(__name__)

Action = Callable[[], None]

BTN_MAIN_MENU = "🏠 Главное меню"
BTN_SCRAPE = "📊 Скрапить учреждения"
BTN_UPLOAD_LAND_PLOTS = "📥 Загрузить Excel LandPlot"
BTN_EXTRACT_PDF = "🖼 Извлечь PDF изображения"
BTN_TEXT = "Текст"
BTN_EXCEL = "Excel"
BTN_DONE = "Готово"
CHECK_MARK = "✔️"

MENU_COMMANDS = {"/menu", "/start", BTN_MAIN_MENU}

GREETING = "Привет! Добро пожаловать. Выберите действие:"
MAIN_MENU_PROMPT = "Главное меню: выберите действие"
UNKNOWN_COMMAND = "Неизвестная команда. Для возврата в меню нажмите /menu."
UNKNOWN_OPTION = "Неизвестная команда. Выберите один из вариантов."

MAIN_MENU_KEYBOARD = [[BTN_SCRAPE], [BTN_UPLOAD_LAND_PLOTS], [BTN_EXTRACT_PDF]]
FORMAT_KEYBOARD = [[BTN_TEXT, BTN_EXCEL], [BTN_MAIN_MENU]]
BACK_KEYBOARD = [[BTN_MAIN_MENU]]


@dataclass
class Attachment:
    file_name: Optional[str]
    mime_type: Optional[str]
    fetch: Callable[[], bytes]

    def read(self) -> bytes:
        return self.fetch()


@dataclass
class InboundEvent:
    chat_id: int
    text: Optional[str] = None
    document: Optional[Attachment] = None


@dataclass
class OutboundMessage:
    text: Optional[str] = None
    keyboard: Optional[List[List[str]]] = None
    document: Optional[bytes] = None
    file_name: Optional[str] = None
    caption: Optional[str] = None

    @property
    def is_document(self) -> bool:
        return self.document is not None


def district_keyboard(selected) -> List[List[str]]:
    codes = District.codes()
    rows: List[List[str]] = []
    for i in range(0, len(codes), 3):
        rows.append([f"{CHECK_MARK} {c}" if c in selected else c for c in codes[i:i + 3]])
    rows.append([BTN_DONE, BTN_MAIN_MENU])
    return rows


class ConversationStateMachine:
    def __init__(
        self,
        sessions: SessionStore,
        send: Callable[[int, OutboundMessage], None],
        *,
        orchestrator: Optional[CrawlOrchestrator] = None,
        format_text_fn: Callable[[List[InstitutionRecord]], str] = format_institutions_text,
        excel_fn: Callable[[List[InstitutionRecord]], bytes] = generate_excel,
        land_plots_fn=upload_land_plots,
        land_plots_text_fn=format_land_plots_text,
        pdf_images_fn: Callable[[bytes], bytes] = extract_images,
    ) -> None:
        self.sessions = sessions
        self.send = send
        self._orchestrator = orchestrator
        self.format_text_fn = format_text_fn
        self.excel_fn = excel_fn
        self.land_plots_fn = land_plots_fn
        self.land_plots_text_fn = land_plots_text_fn
        self.pdf_images_fn = pdf_images_fn

    @property
    def orchestrator(self) -> CrawlOrchestrator:
        if self._orchestrator is None:
            self._orchestrator = get_orchestrator()
        return self._orchestrator

    def handle(self, event: InboundEvent) -> None:
        with self.sessions.locked(event.chat_id) as (session, created):
            action = self._dispatch(event, session, created)
        if action is not None:
            action()

    # --- Dispatch ---
    def _dispatch(self, event: InboundEvent, session: Session, created: bool) -> Optional[Action]:
        """Apply the event to the session; return the action to run unlocked, if any."""
        chat_id = event.chat_id
        text = (event.text or "").strip()

        if text.lower() in MENU_COMMANDS or text in MENU_COMMANDS:
            session.reset()
            greeting = created or text.lower() == "/start"
            self._reply(chat_id, GREETING if greeting else MAIN_MENU_PROMPT, MAIN_MENU_KEYBOARD)
            return

        phase = session.phase
        if phase == Phase.IDLE:
            if self._on_idle(chat_id, text, session):
                return
            if created:
                self._reply(chat_id, GREETING, MAIN_MENU_KEYBOARD)
                return
        elif phase == Phase.SELECTING_OUTPUT_FORMAT:
            if self._on_select_format(chat_id, text, session):
                return
            self._reply(chat_id, UNKNOWN_OPTION)
            return
        elif phase == Phase.SELECTING_DISTRICTS:
            if text == BTN_DONE:
                return self._start_crawl(chat_id, session)
            if self._on_select_districts(chat_id, text, session):
                return
        elif phase == Phase.AWAITING_SPREADSHEET and event.document is not None:
            session.reset()
            return partial(self._on_spreadsheet, chat_id, event.document)
        elif phase == Phase.AWAITING_PDF and event.document is not None:
            session.reset()
            return partial(self._on_pdf, chat_id, event.document)

        self._reply(chat_id, UNKNOWN_COMMAND)

    def _on_idle(self, chat_id: int, text: str, session: Session) -> bool:
        if text in (BTN_SCRAPE, "/scrape"):
            session.phase = Phase.SELECTING_OUTPUT_FORMAT
            self._reply(chat_id, "Выберите формат результата:", FORMAT_KEYBOARD)
        elif text in (BTN_UPLOAD_LAND_PLOTS, "/landplots"):
            session.phase = Phase.AWAITING_SPREADSHEET
            self._reply(chat_id, "Пришлите Excel-файл (.xlsx)", BACK_KEYBOARD)
        elif text in (BTN_EXTRACT_PDF, "/pdf"):
            session.phase = Phase.AWAITING_PDF
            self._reply(chat_id, "Пришлите PDF-документ (.pdf)", BACK_KEYBOARD)
        else:
            return False
        return True

    def _on_select_format(self, chat_id: int, text: str, session: Session) -> bool:
        if text == BTN_TEXT:
            session.pending.output_is_spreadsheet = False
        elif text == BTN_EXCEL:
            session.pending.output_is_spreadsheet = True
        else:
            return False
        session.phase = Phase.SELECTING_DISTRICTS
        self._reply(chat_id, "Выберите район(ы) для скрапинга:", district_keyboard(session.pending.selected_districts))
        return True

    def _on_select_districts(self, chat_id: int, text: str, session: Session) -> bool:
        district = District.from_code(text.replace(CHECK_MARK, "").strip())
        if district is None:
            return False
        selected = session.pending.selected_districts
        if district.name in selected:
            selected.discard(district.name)
        else:
            selected.add(district.name)
        self._reply(
            chat_id,
            "Выберите район(ы) для скрапинга (отмеченные добавлены):",
            district_keyboard(selected),
        )
        return True

    # --- Actions ---
    def _start_crawl(self, chat_id: int, session: Session) -> Action:
        names = district_names_from_codes(session.pending.selected_districts)
        as_spreadsheet = session.pending.output_is_spreadsheet
        session.reset()
        self._reply(chat_id, "Запуск скрапинга...", BACK_KEYBOARD)
        return partial(self._perform_crawl, chat_id, names or None, as_spreadsheet)

    def _perform_crawl(self, chat_id: int, names: Optional[Set[str]], as_spreadsheet: bool) -> None:
        try:
            records = self.orchestrator.run(True, names)
            if as_spreadsheet:
                self.send(
                    chat_id,
                    OutboundMessage(
                        document=self.excel_fn(records),
                        file_name="institutions.xlsx",
                        caption="Результаты в формате Excel",
                    ),
                )
            else:
                self._reply(chat_id, self.format_text_fn(records))
        except CrawlError as exc:
            logger.warning("Crawl requested by chat %s failed: %s", chat_id, exc.message)
            self._reply(chat_id, f"Ошибка при скрапинге: {exc.message}")
        except Exception as exc:
            logger.exception("Crawl requested by chat %s failed", chat_id)
            self._reply(chat_id, f"Ошибка при скрапинге: {exc}")

    def _on_spreadsheet(self, chat_id: int, document: Attachment) -> None:
        try:
            plots = self.land_plots_fn(document.read(), document.mime_type)
            self._reply(chat_id, self.land_plots_text_fn(plots))
        except Exception as exc:
            logger.exception("Land plot upload from chat %s failed", chat_id)
            self._reply(chat_id, f"Ошибка при загрузке файла: {exc}")

    def _on_pdf(self, chat_id: int, document: Attachment) -> None:
        try:
            archive = self.pdf_images_fn(document.read())
            if archive:
                self.send(
                    chat_id,
                    OutboundMessage(
                        document=archive,
                        file_name="extracted_images.zip",
                        caption="Извлеченные изображения",
                    ),
                )
            else:
                self._reply(chat_id, "В документе не найдено изображений.")
        except Exception as exc:
            logger.exception("PDF image extraction for chat %s failed", chat_id)
            self._reply(chat_id, f"Ошибка при загрузке PDF: {exc}")

    def _reply(self, chat_id: int, text: str, keyboard: Optional[List[List[str]]] = None) -> None:
        self.send(chat_id, OutboundMessage(text=text, keyboard=keyboard))
