"""Pagination metadata returned alongside collection responses."""

from __future__ import annotations

from typing import ClassVar

from pymoose.models._base import MooseBaseModel


class Pagination(MooseBaseModel):
    """Server pagination block.

    Accepts both shapes the service emits: the ticket/payment variant
    (``page``, ``total``, ``totalPages``) and the catalog variant
    (``currentPage``, ``totalItems``, ``itemsPerPage``). Every field is
    optional; the loader fills gaps from what it requested.
    """

    _KEY_ALIASES: ClassVar[dict[str, str]] = {
        "currentPage": "page",
        "totalItems": "total",
        "itemsPerPage": "limit",
        "pages": "totalPages",
    }

    page: int | None = None
    limit: int | None = None
    total: int | None = None
    total_pages: int | None = None
    has_next_page: bool | None = None
    has_prev_page: bool | None = None
