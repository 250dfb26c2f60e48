"""Package selection on top of the name search."""

from typing import List

from ..repos.base import Catalog, PackageEntry, SelectionCriteria
from ..repos.search import IndexSearcher, SearchError
from .errors import SelectionError
from .policy import MirrorContext


class PackageSelector:
    def __init__(self, matcher: IndexSearcher, context: MirrorContext):
        self.matcher = matcher
        self.context = context

    def select(self, catalog: Catalog, criteria: SelectionCriteria) -> List[PackageEntry]:
        """Return the catalog entries matching ``criteria``, in catalog order.

        Raises:
            SelectionError: If the search itself fails
        """
        try:
            candidates = self.matcher.find(
                catalog, criteria.pattern, criteria.multiple_versions
            )
        except SearchError as e:
            raise SelectionError(str(e)) from e

        selected = [entry for entry in candidates if criteria.accepts(entry)]
        self.context.logger.info(
            f"Selected {len(selected)} of {len(catalog)} chart versions"
        )
        return selected
