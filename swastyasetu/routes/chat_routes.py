import asyncio
import json
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from swastyasetu.auth.dependencies import CurrentUser, get_current_user, get_db
from swastyasetu.core import config
from swastyasetu.database import SessionLocal
from swastyasetu.models.appointment import Appointment
from swastyasetu.models.chat_message import ChatMessage
from swastyasetu.models.doctor import Doctor
from swastyasetu.models.user import User
from swastyasetu.services.chat import ChatService
from swastyasetu.services.errors import ServiceError, to_http_exception
from swastyasetu.services.polling import PollingTask
from swastyasetu.services.store import RecordStore

router = APIRouter(tags=['chat'])

logger = logging.getLogger(__name__)


class SendMessageRequest(BaseModel):
    message: str


class ChatMessageResponse(BaseModel):
    id: int
    appointment_id: int
    sender_id: int
    receiver_id: int
    message: str
    created_date: datetime

    class Config:
        from_attributes = True


def chat_service_for(db: Session) -> ChatService:
    return ChatService(
        messages=RecordStore(db, ChatMessage),
        appointments=RecordStore(db, Appointment),
        doctors=RecordStore(db, Doctor),
        users=RecordStore(db, User),
    )


@router.get('/{appointment_id}/messages', response_model=list[ChatMessageResponse])
def list_messages(
    appointment_id: int,
    since: datetime | None = Query(default=None),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        return chat_service_for(db).list_messages(appointment_id, current_user.id, since=since)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.post('/{appointment_id}/messages', response_model=ChatMessageResponse, status_code=status.HTTP_201_CREATED)
def send_message(
    appointment_id: int,
    data: SendMessageRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        return chat_service_for(db).send_message(appointment_id, current_user.id, data.message)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


def fetch_messages_since(appointment_id: int, user_id: int, since: datetime | None) -> list[ChatMessageResponse]:
    db = SessionLocal()
    try:
        messages = chat_service_for(db).list_messages(appointment_id, user_id, since=since)
        return [ChatMessageResponse.model_validate(message) for message in messages]
    finally:
        db.close()


def format_event(message: ChatMessageResponse) -> str:
    return f'event: message\ndata: {json.dumps(message.model_dump(mode="json"))}\n\n'


@router.get('/{appointment_id}/stream')
async def stream_messages(
    appointment_id: int,
    request: Request,
    since: datetime | None = Query(default=None),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Push new messages as server-sent events until the client disconnects."""
    user_id = current_user.id
    try:
        chat_service_for(db).ensure_party(appointment_id, user_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc

    queue: asyncio.Queue[list[ChatMessageResponse]] = asyncio.Queue()
    cursor = {'since': since}

    async def fetch() -> list[ChatMessageResponse]:
        return await asyncio.to_thread(fetch_messages_since, appointment_id, user_id, cursor['since'])

    def on_result(messages: list[ChatMessageResponse]) -> None:
        if not messages:
            return
        cursor['since'] = messages[-1].created_date
        queue.put_nowait(messages)

    async def event_source():
        async with PollingTask(fetch, on_result, interval=config.CHAT_POLL_INTERVAL_SECONDS):
            while not await request.is_disconnected():
                try:
                    messages = await asyncio.wait_for(queue.get(), timeout=1)
                except asyncio.TimeoutError:
                    continue
                for message in messages:
                    yield format_event(message)
        logger.debug('Chat stream for appointment %s closed', appointment_id)

    return StreamingResponse(event_source(), media_type='text/event-stream')
