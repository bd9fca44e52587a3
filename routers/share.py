"""
Server-rendered share page for a single property.

Crawlers (WhatsApp, Facebook, X) do not run JavaScript, so the preview tags
are rendered here and browsers are sent on to the SPA route.
"""
import json
from html import escape
from typing import Any, Dict

from bson import ObjectId
from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
from pymongo.database import Database

from config import get_settings
from database import PROPERTIES, get_db

router = APIRouter(tags=["share"])

SITE_NAME = "AMIZERO Real Estate"
DESCRIPTION_LIMIT = 200

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{title} | {site}</title>
<meta name="description" content="{description}">
<link rel="canonical" href="{url}">
<meta property="og:type" content="website">
<meta property="og:site_name" content="{site}">
<meta property="og:title" content="{title}">
<meta property="og:description" content="{description}">
<meta property="og:url" content="{url}">
<meta property="og:image" content="{image}">
<meta name="twitter:card" content="summary_large_image">
<meta name="twitter:title" content="{title}">
<meta name="twitter:description" content="{description}">
<meta name="twitter:image" content="{image}">
<script type="application/ld+json">{json_ld}</script>
<meta http-equiv="refresh" content="0; url={redirect}">
<script>window.location.replace("{redirect_js}");</script>
</head>
<body>
<p><a href="{redirect}">{title}</a></p>
</body>
</html>
"""

NOT_FOUND_PAGE = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>Property not found | AMIZERO Real Estate</title></head>
<body><h1>Property not found</h1><p><a href="/properties.html">Browse all properties</a></p></body>
</html>
"""


def _json_ld(data: Dict[str, Any]) -> str:
    # keep "</script>" and friends out of the inline block
    return json.dumps(data).replace("<", "\\u003c").replace(">", "\\u003e").replace("&", "\\u0026")


def render_property_page(doc: Dict[str, Any]) -> str:
    settings = get_settings()
    base = settings.site_url.rstrip("/")
    property_id = str(doc["_id"])
    url = f"{base}/property/{property_id}"
    redirect = f"/properties.html?id={property_id}"

    title = str(doc.get("title") or "Property")
    description = " ".join(str(doc.get("description") or "").split())[:DESCRIPTION_LIMIT]
    if not description:
        description = f"{title} in {doc.get('location') or 'Rwanda'}"
    images = doc.get("images") or []
    image = images[0] if images else f"{base}/images/og-default.jpg"

    json_ld = {
        "@context": "https://schema.org",
        "@type": "RealEstateListing",
        "name": title,
        "description": description,
        "url": url,
        "image": image,
        "offers": {"@type": "Offer", "price": doc.get("price", 0), "priceCurrency": "RWF"},
    }
    return PAGE_TEMPLATE.format(
        site=escape(SITE_NAME),
        title=escape(title),
        description=escape(description),
        url=escape(url),
        image=escape(image),
        json_ld=_json_ld(json_ld),
        redirect=escape(redirect),
        redirect_js=redirect,
    )


@router.get("/property/{property_id}", response_class=HTMLResponse)
def share_property(property_id: str, db: Database = Depends(get_db)):
    if not ObjectId.is_valid(property_id):
        return HTMLResponse(NOT_FOUND_PAGE, status_code=404)
    doc = db[PROPERTIES].find_one({"_id": ObjectId(property_id), "status": "active"})
    if doc is None:
        return HTMLResponse(NOT_FOUND_PAGE, status_code=404)
    return HTMLResponse(render_property_page(doc))
