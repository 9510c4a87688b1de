from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse, Response

from ...api.deps import get_pdf_service
from ...schemas.api import GeneratePdfRequest, GeneratePdfResponse
from ...services.pdf_service import PdfService

router = APIRouter(tags=["PDF"])


@router.post("/api/generate-pdf", response_model=GeneratePdfResponse)
def generate_pdf(
    payload: GeneratePdfRequest,
    service: PdfService = Depends(get_pdf_service),
):
    result = service.generate(payload.session_id)

    if result.inline:
        return Response(
            content=result.content,
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
        )

    return GeneratePdfResponse(pdf_url=result.pdf_url)


@router.get("/uploads/{filename}")
def download_pdf(filename: str, service: PdfService = Depends(get_pdf_service)):
    path = service.resolve_upload(filename)
    return FileResponse(
        path,
        media_type="application/pdf",
        filename=filename,
    )
