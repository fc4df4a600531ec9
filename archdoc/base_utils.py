# archdoc/base_utils.py


import json
import logging
import os
import re


logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "DEBUG"),
    format="%(asctime)s | %(levelname)s | %(name)s\n%(message)s\n"
)

logger = logging.getLogger("archdoc")


FENCE_PATTERN = re.compile(r"```[a-zA-Z]*\n?")


class BaseUtils():

    # -----------------------
    # Text helpers
    # -----------------------

    def clean_triple_backticks(self, code) -> str:
        return FENCE_PATTERN.sub("", code)

    def _coerce_field_to_str(self, value) -> str:
        # objects are rendered as indented JSON
        if value is None:
            return ""
        if isinstance(value, str):
            return value.strip()
        try:
            return json.dumps(value, indent=2)
        except TypeError:
            return str(value).strip()

    def _preview(self, value, limit: int = 200) -> str:
        try:
            text = json.dumps(value, default=str)
        except Exception:
            text = str(value)
        if len(text) > limit:
            return text[:limit] + "..."
        return text
