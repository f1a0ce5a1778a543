from knowledge_store.repository.item_repository import ItemRepository
from knowledge_store.repository.search_repository import SearchRepository

__all__ = [
    "ItemRepository",
    "SearchRepository",
]
