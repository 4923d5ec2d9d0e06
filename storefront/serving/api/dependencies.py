"""
Request dependencies.
"""

from fastapi import Request

from storefront.lifecycle.services import CatalogServices


def get_services(request: Request) -> CatalogServices:
    """Catalog services built once at startup"""
    return request.app.state.services
