"""SQL-backed collaborators: template lookup, firm hints, generation analytics."""

from typing import Optional, Protocol
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.modules.drafting.schema.documents import (
    FirmHints,
    RequesterContext,
    TemplateCreateRequest,
    TemplateFileType,
    TemplateRecord,
)
from app.modules.drafting.schema.generation import GenerationEvent
from app.modules.drafting.services.records.models import FirmRow, GeneratedDocumentRow, TemplateRow

logger = logging.getLogger(__name__)


class TemplateStore(Protocol):
    async def get_template(self, template_id: str) -> Optional[TemplateRecord]:
        ...


class FirmDirectory(Protocol):
    async def get_firm_hints(self, requester: RequesterContext) -> Optional[FirmHints]:
        ...


class GenerationRecorder(Protocol):
    async def record(self, event: GenerationEvent) -> None:
        ...


def _to_record(row: TemplateRow) -> TemplateRecord:
    try:
        file_type = TemplateFileType(row.file_type or "text")
    except ValueError:
        file_type = TemplateFileType.TEXT
    return TemplateRecord(
        id=row.id,
        name=row.name,
        file_type=file_type,
        raw_content=row.content,
        file_path_ref=row.file_path,
    )


class SqlTemplateStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._sessions = session_factory

    async def get_template(self, template_id: str) -> Optional[TemplateRecord]:
        async with self._sessions() as db:
            row = await db.get(TemplateRow, template_id)
            return _to_record(row) if row else None

    async def create_template(self, req: TemplateCreateRequest, created_by: Optional[str] = None) -> TemplateRecord:
        async with self._sessions() as db:
            row = TemplateRow(
                name=req.name,
                file_type=req.file_type.value,
                content=req.content,
                file_path=req.file_path,
                created_by=created_by,
            )
            db.add(row)
            await db.commit()
            return _to_record(row)


class SqlFirmDirectory:
    """Best-effort firm metadata; a lookup failure just means no hints."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._sessions = session_factory

    async def get_firm_hints(self, requester: RequesterContext) -> Optional[FirmHints]:
        if not requester.firm_id:
            return None
        try:
            async with self._sessions() as db:
                row = await db.get(FirmRow, requester.firm_id)
        except SQLAlchemyError as e:
            logger.warning(f"[firm] lookup for {requester.firm_id} failed: {e}")
            return None
        if row is None:
            return None
        return FirmHints(name=row.name, domain=row.domain)


class SqlGenerationRecorder:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._sessions = session_factory

    async def record(self, event: GenerationEvent) -> None:
        async with self._sessions() as db:
            db.add(
                GeneratedDocumentRow(
                    created_by=event.user_id,
                    firm_id=event.firm_id,
                    template_id=event.template_id,
                    output_type=event.output_type,
                    details=event.metadata,
                )
            )
            await db.commit()
