"""
Table handles - CRUD operations with the table name pre-bound
"""

from typing import TYPE_CHECKING, Any, List, Mapping, Optional, Sequence, Union

if TYPE_CHECKING:
    from tabledb.services.store import Options, TableStore, Where
    from tabledb.database.responses import Row


class TableHandle:
    """Name-bound facade over a TableStore; holds no resources"""

    def __init__(self, store: "TableStore", name: str):
        self.store = store
        self.name = name

    async def filter(self, where: "Where" = None, options: "Options" = None) -> List["Row"]:
        return await self.store.filter(self.name, where, options)

    async def find(self, where: "Where" = None, options: "Options" = None) -> Optional["Row"]:
        return await self.store.find(self.name, where, options)

    async def create(self, data: Union[Mapping[str, Any], Sequence[Mapping[str, Any]]]) -> Any:
        return await self.store.create(self.name, data)

    async def create_many(self, rows: Sequence[Mapping[str, Any]]) -> Any:
        return await self.store.create_many(self.name, rows)

    async def create_one(self, row: Mapping[str, Any]) -> Any:
        return await self.store.create_one(self.name, row)

    async def update(self, where: "Where", data: Mapping[str, Any]) -> int:
        return await self.store.update(self.name, where, data)

    async def update_one(self, where: "Where", data: Mapping[str, Any]) -> int:
        return await self.store.update_one(self.name, where, data)

    async def upsert(self, where: "Where", data: Mapping[str, Any]) -> Any:
        return await self.store.upsert(self.name, where, data)

    async def remove(self, where: "Where" = None) -> int:
        return await self.store.remove(self.name, where)

    def __repr__(self) -> str:
        return f"TableHandle({self.name!r})"
