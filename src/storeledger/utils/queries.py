"""Query helpers shared by the repositories."""

PAGE_SIZE = 100


def fetch_all(query, page_size: int = PAGE_SIZE) -> list:
    """Every record matching ``query``, read page by page.

    A bare ``.all()`` stops at the QuerySet's default limit; listings that must
    be complete go through here instead.
    """
    query = query.order_by("id")
    items = []
    offset = 0
    while True:
        page = query.offset(offset).limit(page_size).all()
        items.extend(page.items)
        if not page.has_next:
            return items
        offset += page_size
