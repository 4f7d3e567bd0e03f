"""
Insertion of scraped items into the apps catalog.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel

from appdiscovery.core.error_logger import get_error_logger
from appdiscovery.core.error_models import ErrorComponent, ErrorStage
from appdiscovery.core.logging import get_logger
from appdiscovery.core.outcomes import OutcomeStatus
from appdiscovery.crawler.categories import CategoryMapper, StaticCategoryMapper
from appdiscovery.crawler.dedup import CUSTOM_SOURCE
from appdiscovery.crawler.url_utils import domain_of
from appdiscovery.db.models import ScrapedItem
from appdiscovery.db.repository import CatalogRepository

logger = get_logger(__name__)


class ImportOutcome(BaseModel):
    """Result of importing one item URL."""
    url: str
    status: OutcomeStatus
    name: Optional[str] = None
    app_id: Optional[str] = None
    reason: Optional[str] = None


class CatalogImporter:
    """
    Turns ScrapedItems into apps rows (plus screenshot rows).

    Items are matched against the catalog by source URL, then by website
    URL, then by exact name among custom-imported entries; a match is
    reported as skipped and nothing is written.
    """

    def __init__(self, repository: CatalogRepository, category_mapper: Optional[CategoryMapper] = None):
        self.repository = repository
        self.category_mapper = category_mapper or StaticCategoryMapper()

    def existing_app_id(self, item: ScrapedItem) -> Optional[str]:
        for lookup in (
            lambda: self.repository.find_app_by_source_url(item.source_url),
            lambda: self.repository.find_app_by_website_url(item.source_url),
            lambda: self.repository.find_app_by_name(item.name, source=CUSTOM_SOURCE),
        ):
            row = lookup()
            if row:
                return str(row["id"])
        return None

    def category_id_for(self, label: str) -> Optional[Any]:
        slug = self.category_mapper.slug_for(label)
        try:
            return self.repository.find_category_id(slug)
        except Exception as e:
            logger.warning(f"Category lookup failed for slug {slug!r}: {e}")
            return None

    def build_row(self, item: ScrapedItem) -> Dict[str, Any]:
        return {
            "name": item.name,
            "developer": item.developer,
            "description": item.description,
            "category_id": self.category_id_for(item.category),
            "price": item.price or 0,
            "currency": "USD",
            "version": item.version,
            "is_on_mas": False,
            "mas_id": None,
            "mas_url": None,
            "website_url": item.developer_website_url or item.source_url,
            "macupdate_url": item.source_url,
            "icon_url": item.icon_url,
            "minimum_os_version": item.requirements[0] if item.requirements else None,
            "size": item.file_size,
            "architecture": item.architecture,
            "is_free": item.is_free,
            "source": CUSTOM_SOURCE,
            "status": "ACTIVE",
            "last_updated": item.last_updated.isoformat(),
        }

    def import_item(self, item: ScrapedItem) -> ImportOutcome:
        """
        Insert item unless it is already catalogued.

        Lookup and insert errors become a failed outcome; screenshot
        rows are best-effort.
        """
        url = item.source_url
        try:
            existing = self.existing_app_id(item)
            if existing:
                return ImportOutcome(url=url, status=OutcomeStatus.SKIPPED, name=item.name, app_id=existing,
                                     reason="already in catalog")

            app = self.repository.insert_app(self.build_row(item))
        except Exception as e:
            logger.error(f"Import failed for {url}: {e}")
            get_error_logger().log_exception(
                e,
                component=ErrorComponent.DATABASE,
                stage=ErrorStage.IMPORT_ITEM,
                domain=domain_of(url),
                url=url,
            )
            return ImportOutcome(url=url, status=OutcomeStatus.FAILED, name=item.name, reason=str(e))

        app_id = str(app.get("id"))
        self._save_screenshots(app_id, item)
        logger.info(f"Imported {item.name} ({app_id})")
        return ImportOutcome(url=url, status=OutcomeStatus.OK, name=item.name, app_id=app_id)

    def _save_screenshots(self, app_id: str, item: ScrapedItem) -> None:
        rows = [
            {"app_id": app_id, "url": shot, "display_order": index, "caption": f"{item.name} screenshot {index + 1}"}
            for index, shot in enumerate(item.screenshots)
        ]
        try:
            self.repository.insert_screenshots(rows)
        except Exception as e:
            logger.warning(f"Screenshots for {item.name} not saved: {e}")
