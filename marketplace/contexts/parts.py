"""Parts context: public catalog, store inventory, and part detail state."""
import asyncio
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Union

from marketplace import config
from marketplace.errors import AuthError, MarketplaceError
from marketplace.logging import get_logger, sanitize_id_for_logging
from marketplace.models import Part, PartRequest
from marketplace.services.http import Sleep
from marketplace.services.parts import PartService
from .base import ResourceContext

logger = get_logger(__name__)

PUBLIC_PARTS = "public_parts"
STORE_PARTS = "store_parts"
PART_DETAIL = "part_detail"


def sample_parts() -> List[Part]:
    """Display-only listing shown when the public catalog cannot be loaded."""
    now = datetime.now(timezone.utc)
    common = dict(
        image_url="/no-image.svg",
        is_available=True,
        category="Sample",
        brand="Sample Brand",
        model="Sample Model",
        year="2023",
        created_at=now,
        updated_at=now,
    )
    return [
        Part(
            id="placeholder-1",
            name="Sample Part 1",
            description="This is a sample part for display when the catalog is unavailable",
            price=Decimal("99.99"),
            **common,
        ),
        Part(
            id="placeholder-2",
            name="Sample Part 2",
            description="Another sample part for display when the catalog is unavailable",
            price=Decimal("149.99"),
            **common,
        ),
    ]


class PartsContext(ResourceContext):
    """
    Catalog state for the UI.

    Args:
        service: PartService used for all requests
        use_placeholder: Show `placeholder_parts` when the public listing
            fails terminally (not for authorization failures)
        placeholder_parts: Listing to show; defaults to two sample parts
        max_attempts: Coarse retry bound per resource kind
        sleep: Awaitable used for backoff waits
    """

    resource_kinds = (PUBLIC_PARTS, STORE_PARTS, PART_DETAIL)

    def __init__(
        self,
        service: PartService,
        use_placeholder: bool = config.PLACEHOLDER_FALLBACK,
        placeholder_parts: Optional[List[Part]] = None,
        max_attempts: int = config.MAX_RETRY_ATTEMPTS,
        sleep: Optional[Sleep] = None,
    ):
        super().__init__(max_attempts=max_attempts, sleep=sleep or asyncio.sleep)
        self.service = service
        self.use_placeholder = use_placeholder
        self.placeholder_parts = placeholder_parts
        self.parts: List[Part] = []
        self.store_parts: List[Part] = []
        self.selected_part: Optional[Part] = None
        self.showing_placeholder = False
        self._last_filters: Optional[Dict[str, Optional[str]]] = None

    async def start(self) -> None:
        """Initial load of the public listing."""
        await self.fetch_public_parts()

    # ---------- fetches ----------

    async def fetch_public_parts(self, filters: Optional[Mapping[str, Optional[str]]] = None) -> bool:
        self._last_filters = dict(filters) if filters else None

        def apply(data: List[Part]) -> None:
            if not data:
                logger.info("No parts found, but request was successful")
            self._update(parts=list(data), showing_placeholder=False)

        return await self._run(
            PUBLIC_PARTS,
            lambda: self.service.get_public_parts(filters),
            apply,
            label="parts",
            on_terminal=self._apply_placeholder,
        )

    async def fetch_store_parts(self) -> bool:
        return await self._run(
            STORE_PARTS,
            self.service.get_store_parts,
            lambda data: self._update(store_parts=list(data)),
            label="store parts",
        )

    async def fetch_part(self, part_id: str) -> bool:
        return await self._run(
            PART_DETAIL,
            lambda: self.service.get_part(part_id),
            lambda part: self._update(selected_part=part),
            label="part details",
        )

    async def retry_fetch(self) -> bool:
        """Explicit user retry: reset every counter and reload the public listing with the last filters."""
        for retry in self._retries.values():
            retry.reset()
        self._update(error=None, error_kind=None, last_error=None)
        return await self.fetch_public_parts(self._last_filters)

    def _apply_placeholder(self, error: Optional[MarketplaceError]) -> None:
        if not self.use_placeholder or isinstance(error, AuthError):
            return
        logger.info("Using placeholder data for parts")
        placeholder = self.placeholder_parts if self.placeholder_parts is not None else sample_parts()
        self._update(parts=list(placeholder), showing_placeholder=True)

    # ---------- mutations ----------

    async def create_part(self, data: Union[PartRequest, dict]) -> Part:
        self._update(loading=True, error=None, error_kind=None, last_error=None)
        try:
            part = await self.service.create_part(data)
        except MarketplaceError as e:
            logger.error(f"Error creating part: {e}")
            self._set_failure(e)
            raise
        self._update(loading=False, store_parts=[part, *self.store_parts])
        return part

    async def update_part(self, part_id: str, data: Union[PartRequest, dict]) -> Part:
        self._update(loading=True, error=None, error_kind=None, last_error=None)
        try:
            updated = await self.service.update_part(part_id, data)
        except MarketplaceError as e:
            logger.error(f"Error updating part {sanitize_id_for_logging(part_id)}: {e}")
            self._set_failure(e)
            raise

        def replace(parts: List[Part]) -> List[Part]:
            return [updated if part.id == part_id else part for part in parts]

        changes = dict(loading=False, store_parts=replace(self.store_parts), parts=replace(self.parts))
        if self.selected_part is not None and self.selected_part.id == part_id:
            changes["selected_part"] = updated
        self._update(**changes)
        return updated

    async def delete_part(self, part_id: str) -> None:
        self._update(loading=True, error=None, error_kind=None, last_error=None)
        try:
            await self.service.delete_part(part_id)
        except MarketplaceError as e:
            logger.error(f"Error deleting part {sanitize_id_for_logging(part_id)}: {e}")
            self._set_failure(e)
            raise

        changes = dict(
            loading=False,
            store_parts=[part for part in self.store_parts if part.id != part_id],
            parts=[part for part in self.parts if part.id != part_id],
        )
        if self.selected_part is not None and self.selected_part.id == part_id:
            changes["selected_part"] = None
        self._update(**changes)

    def set_selected_part(self, part: Optional[Part]) -> None:
        self._update(selected_part=part)

    def find_part(self, part_id: str) -> Optional[Part]:
        """Look a part up in the loaded listings (placeholders excluded)."""
        candidates = [] if self.showing_placeholder else list(self.parts)
        candidates += self.store_parts
        if self.selected_part is not None:
            candidates.append(self.selected_part)
        return next((part for part in candidates if part.id == part_id), None)
