from __future__ import annotations

from typing import Sequence, TypeVar

from app.schemas.universal import PageContext, PaginatedResult, PaginationLinks

T = TypeVar("T")


def total_pages_for(count: int, page_size: int) -> int:
    if count <= 0:
        return 0
    return -(-count // page_size)


def _page_link(base_path: str, page: int, page_size: int) -> str:
    return f"{base_path}?page={page}&pageSize={page_size}"


def build_links(page: int, page_size: int, total_pages: int, base_path: str) -> PaginationLinks:
    # An empty result still links to page 1 as its last page.
    last_page = max(total_pages, 1)
    return PaginationLinks(
        first=_page_link(base_path, 1, page_size),
        previous=_page_link(base_path, page - 1, page_size) if page > 1 else None,
        next=_page_link(base_path, page + 1, page_size) if page < total_pages else None,
        last=_page_link(base_path, last_page, page_size),
    )


def paginate(results: Sequence[T], *, count: int, page: int, page_size: int, base_path: str) -> PaginatedResult[T]:
    total_pages = total_pages_for(count, page_size)
    return PaginatedResult(
        count=count,
        page_context=PageContext(page=page, per_page=page_size, total_pages=total_pages),
        links=build_links(page, page_size, total_pages, base_path),
        results=list(results),
    )
