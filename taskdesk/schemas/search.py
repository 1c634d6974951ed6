"""Cross-entity search result schemas."""

from __future__ import annotations

from pydantic import BaseModel

from .call import CallRead
from .customer import CustomerRead
from .task import TaskRead


class SearchResponse(BaseModel):
    query: str
    tasks: list[TaskRead] = []
    customers: list[CustomerRead] = []
    calls: list[CallRead] = []
    errors: dict[str, str] = {}
