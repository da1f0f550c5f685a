"""Item list model behind each history tab"""

from typing import List
from loguru import logger

from ...core.storage import ReturnedItem, StorageContainer, StorageQuery


class HistoryFeed:
    """
    Items shown by one history tab, newest first.

    The recent feed pages through the ledger ``page_size`` rows at a time
    and stops once a short page comes back; new copies are prepended by
    polling for entries newer than the first item. Starred and search feeds
    are fetched in one go.
    """

    def __init__(self, store: StorageContainer, page_size: int):
        self.store = store
        self.page_size = page_size
        self.items: List[ReturnedItem] = []
        self.can_load_more = False

    def clear(self):
        self.items = []
        self.can_load_more = False

    def load_initial(self) -> List[ReturnedItem]:
        """Load the first page of recent items"""
        self.items = self.store.query(StorageQuery.recent(self.page_size, 0))
        self.can_load_more = len(self.items) == self.page_size
        return self.items

    def load_more(self) -> List[ReturnedItem]:
        """
        Append the next page of recent items

        Returns:
            The rows added (empty once the ledger is exhausted)
        """
        if not self.can_load_more:
            return []

        page = self.store.query(StorageQuery.recent(self.page_size, len(self.items)))

        if len(page) != self.page_size:
            self.can_load_more = False

        self.items.extend(page)
        return page

    def poll_new(self) -> List[ReturnedItem]:
        """
        Prepend recent items copied since the newest loaded item

        Returns:
            The rows added
        """
        if not self.items:
            return self.load_initial()

        count = self.store.count_the_recents_newer_than(self.items[0].timestamp_ms)
        if count == 0:
            return []

        new_items = self.store.query(StorageQuery.recent(count, 0))
        self.items = new_items + self.items
        logger.debug(f"Prepended {len(new_items)} new items")
        return new_items

    def load(self, query: StorageQuery) -> List[ReturnedItem]:
        """Replace the items with the full result of a favorites or search query"""
        self.items = self.store.query(query)
        self.can_load_more = False
        return self.items

    def discard(self, data_id: int) -> int:
        """
        Drop every loaded row showing a deleted content record

        Returns:
            Number of rows dropped
        """
        before = len(self.items)
        self.items = [item for item in self.items if item.data_id != data_id]
        return before - len(self.items)

    def mark_favorite(self, data_id: int, value: bool):
        for item in self.items:
            if item.data_id == data_id:
                item.is_favorite = value
