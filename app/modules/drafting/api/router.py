from fastapi import APIRouter, Depends, File, Header, HTTPException, UploadFile
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool
from typing import Optional
import logging
import os
import time

from app.modules.drafting.schema.documents import (
    ExtractResponse,
    RequesterContext,
    SourceUploadResponse,
    TemplateCreateRequest,
    TemplateRecord,
)
from app.modules.drafting.schema.generation import (
    GenerateRequest,
    GenerationResponse,
    PackageRequest,
)
from app.modules.drafting.services.extraction.text_extractor import extract_with_report
from app.modules.drafting.services.packager import package
from app.modules.drafting.services.pipeline import DraftingPipeline
from core.config import (
    GenerationConfig,
    get_file_store,
    get_generation_config,
    get_pipeline,
    get_template_store,
)
from core.errors import DraftingError, NotFoundError

logger = logging.getLogger(__name__)

v1 = APIRouter(prefix="/api/v1/drafting", tags=["Document Drafting"])
router = v1  # optional alias for external imports

MAX_UPLOAD_BYTES = 25 * 1024 * 1024


def get_requester(
    x_user_id: str = Header(..., alias="X-User-Id"),
    x_firm_id: Optional[str] = Header(None, alias="X-Firm-Id"),
) -> RequesterContext:
    return RequesterContext(user_id=x_user_id, firm_id=x_firm_id)


def _http_error(e: DraftingError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.to_detail())


async def _read_upload(file: UploadFile) -> bytes:
    if not file.filename:
        raise HTTPException(status_code=400, detail="File must have a filename")
    data = await file.read()
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File too large")
    return data


@v1.post("/generate", response_model=GenerationResponse)
async def generate_document(
    req: GenerateRequest,
    requester: RequesterContext = Depends(get_requester),
    pipeline: DraftingPipeline = Depends(get_pipeline),
) -> GenerationResponse:
    """Run the two-phase drafting pipeline over the requester's uploaded case files."""
    start_time = time.time()
    try:
        result = await pipeline.generate(req.query, req.template_id, requester)
    except DraftingError as e:
        logger.warning(f"[rag-generate] {e.code}: {e.message}")
        raise _http_error(e) from e
    except Exception as e:
        logger.error(f"Error generating document: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail={"success": False, "error": "internal_error", "message": str(e)},
        ) from e

    elapsed_ms = int((time.time() - start_time) * 1000)
    logger.info(
        f"[rag-generate] done in {elapsed_ms}ms: {len(result.answer_text)} chars, "
        f"{len(result.sources)} sources, authority={result.style_authority}"
    )
    return GenerationResponse(**result.model_dump(), success=True)


@v1.post("/package")
async def package_document(
    req: PackageRequest,
    template_store=Depends(get_template_store),
) -> Response:
    """Wrap generated text into a downloadable file in the template's format."""
    template = await template_store.get_template(req.template_id)
    if template is None:
        raise _http_error(NotFoundError("Template not found", details={"template_id": req.template_id}))

    packaged = await run_in_threadpool(package, template, req.text, req.output_format)
    return Response(
        content=packaged.content,
        media_type=packaged.media_type,
        headers={"Content-Disposition": f'attachment; filename="{packaged.filename}"'},
    )


@v1.post("/extract", response_model=ExtractResponse)
async def extract_document_text(file: UploadFile = File(...)) -> ExtractResponse:
    """Extract plain text from an uploaded DOCX, PDF or text file."""
    data = await _read_upload(file)
    report = await run_in_threadpool(extract_with_report, file.filename, data)
    return ExtractResponse(
        filename=file.filename,
        text=report.text,
        chars=0 if report.degraded else report.chars,
        strategy=report.strategy,
        degraded=report.degraded,
        errors=report.errors,
    )


@v1.post("/sources", response_model=SourceUploadResponse)
async def upload_source(
    file: UploadFile = File(...),
    requester: RequesterContext = Depends(get_requester),
    file_store=Depends(get_file_store),
    config: GenerationConfig = Depends(get_generation_config),
) -> SourceUploadResponse:
    """Store a case file in the requester's scope, prefixed with an upload timestamp."""
    data = await _read_upload(file)
    name = f"{int(time.time() * 1000)}_{os.path.basename(file.filename)}"
    try:
        path = await file_store.store(config.source_bucket, f"{requester.user_id}/{name}", data)
    except DraftingError as e:
        raise _http_error(e) from e
    return SourceUploadResponse(
        message=f"Stored {file.filename}",
        bucket=config.source_bucket,
        storage_path=path,
        filename=name,
        size_bytes=len(data),
    )


@v1.post("/templates", response_model=TemplateRecord)
async def create_template(
    req: TemplateCreateRequest,
    requester: RequesterContext = Depends(get_requester),
    template_store=Depends(get_template_store),
) -> TemplateRecord:
    if not (req.content or req.file_path):
        raise HTTPException(status_code=400, detail="Template needs inline content or a file_path")
    return await template_store.create_template(req, created_by=requester.user_id)
