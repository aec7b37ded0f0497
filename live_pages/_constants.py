"""Common literal values used across live_pages.

These constants keep cache keys, path prefixes and publish endpoints
centralized so the overlay, registry, publishers and tests import the same
values without drifting. Intended for internal use within the live_pages
package.

Examples
--------
>>> from live_pages import _constants
>>> _constants.DRAFT_CACHE_KEY_TEMPLATE.format(key="techflow")
'preview-techflow'
>>> _constants.ORDER_STEP
10
"""

DRAFT_CACHE_KEY_TEMPLATE = "preview-{key}"
DEFAULT_LOCALE = "en"
DEFAULT_REGION = "main"
DEFAULT_PAGE_TYPE = "home"
SECTIONS_PREFIX = "sections"
ORDER_STEP = 10
PUBLISH_ENDPOINT = "/api/sites/publish"

# Sub-pages rendered once per slug stamp their sections with a context key.
CONTEXT_PROPERTIES: dict[str, str] = {
    "service-detail": "serviceSlug",
    "product-detail": "productSlug",
    "category-detail": "categorySlug",
}
