"""Parts catalog/inventory API."""
from typing import Dict, List, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from marketplace.config import Endpoints
from marketplace.errors import invalid_input
from marketplace.logging import get_logger
from marketplace.models import Part, PartRequest
from .http import HttpClient, get_http_client

logger = get_logger(__name__)

# Query parameters understood by the public listing
PUBLIC_FILTER_KEYS = ("category", "brand", "model", "year", "search")


def build_filters(filters: Optional[Mapping[str, Optional[str]]]) -> Dict[str, str]:
    """Drop empty values; unknown keys are passed through with a warning."""
    if not filters:
        return {}
    params = {}
    for key, value in filters.items():
        if value is None or value == "":
            continue
        if key not in PUBLIC_FILTER_KEYS:
            logger.warning(f"Unknown parts filter '{key}' passed through")
        params[key] = str(value)
    return params


class PartService:
    """CRUD over the catalog. Listing is public; the rest needs a session."""

    def __init__(self, http: Optional[HttpClient] = None):
        self._http = http

    @property
    def http(self) -> HttpClient:
        if self._http is None:
            self._http = get_http_client()
        return self._http

    async def get_public_parts(self, filters: Optional[Mapping[str, Optional[str]]] = None) -> List[Part]:
        params = build_filters(filters)
        return await self.http.get(Endpoints.PARTS_PUBLIC, params=params or None, response_model=List[Part])

    async def get_store_parts(self) -> List[Part]:
        """Parts of the signed-in store owner."""
        return await self.http.get(Endpoints.PARTS_STORE, requires_auth=True, response_model=List[Part])

    async def get_part(self, part_id: str) -> Part:
        return await self.http.get(Endpoints.part_detail(part_id), requires_auth=True, response_model=Part)

    async def create_part(self, data: Union[PartRequest, dict]) -> Part:
        return await self.http.post(Endpoints.PARTS, _payload(data), requires_auth=True, response_model=Part)

    async def update_part(self, part_id: str, data: Union[PartRequest, dict]) -> Part:
        return await self.http.put(
            Endpoints.part_detail(part_id), _payload(data), requires_auth=True, response_model=Part
        )

    async def delete_part(self, part_id: str) -> None:
        await self.http.delete(Endpoints.part_detail(part_id), requires_auth=True)


def _payload(data: Union[PartRequest, dict]) -> dict:
    if isinstance(data, PartRequest):
        return data.to_payload()
    try:
        return PartRequest.model_validate(data).to_payload()
    except PydanticValidationError as e:
        raise invalid_input(e) from e
