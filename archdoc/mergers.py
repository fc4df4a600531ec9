# archdoc/mergers.py

import logging
import time
from uuid import uuid4

from archdoc.key_resolver import item_key, key_fields_for, same_identity

logger = logging.getLogger("archdoc")


def _is_plain_object(value) -> bool:
    return isinstance(value, dict)


def merge_tree(existing_tree, incoming_tree):
    """
    Deep-merge two nested-object trees and return a new tree.

    Only object-vs-object collisions recurse. Any other collision (leaf, list,
    or a non-object on the existing side) is won by the incoming value.
    Keys only present in existing_tree are kept untouched.
    """
    if not _is_plain_object(incoming_tree):
        return incoming_tree
    if not _is_plain_object(existing_tree):
        return dict(incoming_tree)

    result = dict(existing_tree)
    for key, incoming_value in incoming_tree.items():
        existing_value = existing_tree.get(key)
        if _is_plain_object(incoming_value) and _is_plain_object(existing_value):
            result[key] = merge_tree(existing_value, incoming_value)
        else:
            result[key] = incoming_value
    return result


def _synthetic_key(taken) -> str:
    key = f"item_{time.time_ns()}_{uuid4().hex[:9]}"
    while key in taken:
        key = f"item_{time.time_ns()}_{uuid4().hex[:9]}"
    return key


def _shallow_merge_item(section: str, stored, incoming):
    if not isinstance(stored, dict) or not isinstance(incoming, dict):
        return incoming
    merged = {**stored, **incoming}
    # the identity keeps the casing it was first stored with
    for field in key_fields_for(section):
        if field in stored and field in incoming and same_identity(stored[field], incoming[field]):
            merged[field] = stored[field]
    return merged


def merge_list(existing_list, incoming_list, section: str) -> list:
    """
    Upsert incoming_list into existing_list by identity key.

    - matched items are shallow-merged in place (incoming fields win, absent fields survive);
    - unmatched items are appended in input order;
    - items without a resolvable key are never dropped.

    Neither input is mutated. Fields cannot be removed through a merge.
    """
    if existing_list is None:
        return list(incoming_list) if isinstance(incoming_list, list) else []
    if incoming_list is None:
        return list(existing_list) if isinstance(existing_list, list) else []
    if not isinstance(existing_list, list):
        existing_list = []
    if not isinstance(incoming_list, list):
        incoming_list = []

    logger.debug(
        f"[MERGE] section={section} existing={len(existing_list)} incoming={len(incoming_list)}"
    )

    merged: dict = {}
    for idx, item in enumerate(existing_list):
        key = item_key(section, item)
        if key is None or key in merged:
            # not merge-targetable, but kept in place
            merged[("existing", idx)] = item
        else:
            merged[key] = item

    for idx, item in enumerate(incoming_list):
        key = item_key(section, item)
        if key is None:
            synthetic = _synthetic_key(merged)
            merged[synthetic] = item
            logger.debug(f"[MERGE] incoming item {idx + 1} has no key, stored as {synthetic}")
        elif key in merged:
            merged[key] = _shallow_merge_item(section, merged[key], item)
            logger.debug(f"[MERGE] updated existing item: {key}")
        else:
            merged[key] = item
            logger.debug(f"[MERGE] added new item: {key}")

    result = list(merged.values())
    logger.debug(
        f"[MERGE] {len(existing_list)} existing + {len(incoming_list)} incoming = {len(result)} total"
    )
    return result
