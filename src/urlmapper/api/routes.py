from urllib.parse import quote

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Response, status

from urlmapper.api.deps import get_mapping_service
from urlmapper.schemas.mappings import CreateMappingRequest, HealthResponse, MappingResponse
from urlmapper.services.mappings import MappingService

router = APIRouter()

# only methods with a handler; everything else is 405 on any path
SUPPORTED_METHODS = frozenset({"GET", "POST"})


def location_header(url: str) -> str:
    """
    The stored URL as a header value. Only characters a latin-1 header
    cannot carry (controls, code points above 0xff) are percent-encoded.
    """
    return "".join(
        quote(ch, safe="") if ord(ch) < 0x20 or ord(ch) == 0x7F or ord(ch) > 0xFF else ch
        for ch in url
    )


# "_" is outside the short code alphabet, so no generated code can shadow this
@router.get("/_health", response_model=HealthResponse)
def health(response: Response, service: MappingService = Depends(get_mapping_service)):
    healthy = service.healthy()
    if not healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return HealthResponse(status="ok" if healthy else "degraded", store=healthy)


@router.post("/",
          response_model=MappingResponse,
          status_code=status.HTTP_201_CREATED
)
def create_mapping(req: CreateMappingRequest, service: MappingService = Depends(get_mapping_service)):
    record = service.create(req.long_url)
    return MappingResponse.from_record(record)


@router.get("/{short_url}")
def resolve_mapping(
    short_url: str,
    background_tasks: BackgroundTasks,
    service: MappingService = Depends(get_mapping_service),
):
    record = service.resolve(short_url)

    if record is None:
        raise HTTPException(status_code=404, detail="URL not found")

    # counter update runs after the redirect is sent and cannot change it
    background_tasks.add_task(service.record_access, record.short_url)

    return Response(
        status_code=status.HTTP_301_MOVED_PERMANENTLY,
        headers={"location": location_header(record.long_url)},
    )
