"""
Pagination utilities for the project.

Defines the page number pagination class used across DRF endpoints.
Clients pick the page with ``page`` and the page size with ``limit``;
responses wrap the rows in the project's ``success``/``data`` envelope
together with ``{page, limit, total, pages}`` metadata.
"""
import math

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class EnvelopePagination(PageNumberPagination):
    """A page number paginator that reports totals alongside the rows."""

    page_size = 20
    page_size_query_param = "limit"
    max_page_size = 100

    def get_paginated_response(self, data):
        total = self.page.paginator.count
        limit = self.page.paginator.per_page
        return Response({
            "success": True,
            "data": data,
            "pagination": {
                "page": self.page.number,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit) if limit else 0,
            },
        })

    def get_paginated_response_schema(self, schema):
        return {
            "type": "object",
            "properties": {
                "success": {"type": "boolean"},
                "data": schema,
                "pagination": {
                    "type": "object",
                    "properties": {
                        "page": {"type": "integer"},
                        "limit": {"type": "integer"},
                        "total": {"type": "integer"},
                        "pages": {"type": "integer"},
                    },
                },
            },
        }


class MyOrdersPagination(EnvelopePagination):
    """Smaller default page for a customer's own order history."""

    page_size = 10
