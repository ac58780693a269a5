"""
Image references inside checklists.

A checklist points at images in two places: its top-level ``images`` list and
each item's ``imageUrls`` list. These helpers count, find, rewrite and strip
those references without touching the database.
"""

from collections import Counter
from typing import Optional


def _item_urls(item: dict) -> list[str]:
    urls = item.get("imageUrls") if isinstance(item, dict) else None
    return urls if isinstance(urls, list) else []


def count_references(checklists) -> Counter:
    """How many places reference each image URL across the given checklists"""
    counts: Counter = Counter()
    for checklist in checklists:
        for url in checklist.images or []:
            counts[url] += 1
        for item in checklist.items or []:
            for url in _item_urls(item):
                counts[url] += 1
    return counts


def find_usage(checklists, image_url: str) -> list[dict]:
    usage = []
    for checklist in checklists:
        if image_url in (checklist.images or []):
            usage.append(
                {
                    "checklist_id": checklist.id,
                    "checklist_type": checklist.checklist_type,
                    "location": "top_level",
                }
            )
        for item in checklist.items or []:
            if image_url in _item_urls(item):
                usage.append(
                    {
                        "checklist_id": checklist.id,
                        "checklist_type": checklist.checklist_type,
                        "location": "item",
                        "item_text": item.get("text") or "Unnamed item",
                    }
                )
    return usage


def _rewrite(urls: list[str], old: str, new: Optional[str]) -> list[str]:
    result = []
    for url in urls:
        if url == old:
            if new and new not in result:
                result.append(new)
        elif url not in result:
            result.append(url)
    return result


def rewrite_checklist(checklist, old_url: str, new_url: Optional[str]) -> bool:
    """
    Replace ``old_url`` with ``new_url`` (or drop it when ``new_url`` is None).
    Assigns fresh lists so the JSON columns register the change.
    Returns True if the checklist referenced the old URL.
    """
    images = list(checklist.images or [])
    items = [dict(item) for item in (checklist.items or [])]
    changed = old_url in images

    new_images = _rewrite(images, old_url, new_url)
    for item in items:
        urls = _item_urls(item)
        if old_url in urls:
            changed = True
            item["imageUrls"] = _rewrite(urls, old_url, new_url)

    if changed:
        checklist.images = new_images
        checklist.items = items
    return changed
