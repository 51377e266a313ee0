"""Prompt construction for the matching oracle."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from reunite.domain.model import Item

SINGLE_ITEM_SYSTEM_INSTRUCTION = (
    "Analyze the item descriptions and images to find a single high-confidence match "
    "between the one LOST item and the list of FOUND items. The visual similarity of "
    "the images is the most important factor. Output ONLY the resulting JSON object."
)

BATCH_SYSTEM_INSTRUCTION = (
    "Analyze the item descriptions and images to find at most one high-confidence match "
    "between any LOST item and any FOUND item. The visual similarity of the images is the "
    "most important factor. Output ONLY the resulting JSON object."
)

_RESPONSE_INSTRUCTIONS = (
    "Rate your confidence as \"high\" only when you are at least 95% certain that both "
    "reports describe the very same physical object, \"medium\" when they are plausibly "
    "the same, and \"low\" otherwise.\n"
    'Answer with {{"match": {{"lostId": <id>, "foundId": <id>, "confidence": '
    '"high" | "medium" | "low"}}}} for the single best candidate{scope}, or '
    '{{"match": null}} if there is no plausible candidate.'
)


def describe_item(item: Item) -> str:
    content = item.content_ref or "none"
    return (
        f"ID: {item.id}\n"
        f'Title: "{item.title}"\n'
        f'Description: "{item.description}"\n'
        f"Image CID: {content}\n"
    )


def attachment_label(item: Item) -> str:
    return f"Image of {item.kind.upper()} item ID {item.id} (\"{item.title}\")"


def single_item_prompt(lost_item: Item, found_items: Sequence[Item]) -> str:
    """Prompt comparing one lost item against every unmatched found item."""

    sections = [
        "You are a lost and found matching service. Your goal is to determine if a single "
        "LOST item matches any of the FOUND items in the provided list. A match should only "
        "be confirmed if there is a very high degree of confidence that the items are "
        "identical.\n",
        "Analyze the following items based on their title, description, and, most "
        "importantly, their images.\n",
        "--- LOST ITEM ---",
        describe_item(lost_item),
        "--- FOUND ITEMS ---",
        "---\n".join(describe_item(item) for item in found_items),
        "--- INSTRUCTIONS ---",
        _RESPONSE_INSTRUCTIONS.format(scope=f" for LOST item {lost_item.id}"),
    ]
    return "\n".join(sections)


def batch_prompt(lost_items: Sequence[Item], found_items: Sequence[Item]) -> str:
    """Prompt comparing every unmatched lost item against every unmatched found item."""

    sections = [
        "You are a lost and found matching service. Your goal is to find the single most "
        "likely pair of a LOST item and a FOUND item describing the same physical object. "
        "A match should only be confirmed if there is a very high degree of confidence that "
        "the items are identical.\n",
        "--- LOST ITEMS ---",
        "---\n".join(describe_item(item) for item in lost_items),
        "--- FOUND ITEMS ---",
        "---\n".join(describe_item(item) for item in found_items),
        "--- INSTRUCTIONS ---",
        _RESPONSE_INSTRUCTIONS.format(scope=""),
    ]
    return "\n".join(sections)
