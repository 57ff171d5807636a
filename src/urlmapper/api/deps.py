from fastapi import Request

from urlmapper.services.mappings import MappingService


def get_mapping_service(request: Request) -> MappingService:
    # built once in the app lifespan
    return request.app.state.service
