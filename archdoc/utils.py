# archdoc/utils.py

import logging
import re
from collections import OrderedDict

import commentjson
import yaml
from json_repair import repair_json

from archdoc.base_utils import BaseUtils
from archdoc.errors import MalformedPayloadError

logger = logging.getLogger("archdoc")

MARKER_PATTERN = re.compile(r"\[CANVAS:(\w+):(\w+)\]")
JSON_BLOCK_PATTERN = re.compile(r"```json\s*([\s\S]*?)\s*```")


class Utils(BaseUtils):

    # -----------------------
    # JSON parsing
    # -----------------------

    def load_fault_tolerant_json(self, json_str, ensure_ordered=False):
        """
        Attempts to load a JSON-like string produced by an LLM.

        commentjson first (tolerates comments), then pyyaml over a sanitized copy,
        then json_repair. Raises MalformedPayloadError when every strategy fails.
        """
        def sanitize_json_string(input_str):
            """
            Escapes problematic characters inside string literals and strips
            // and /* */ comments outside them.
            """

            def process_string_segment(match):
                content = match.group(1)
                # unescaped backslashes not part of an escape sequence
                content = re.sub(r'(?<!\\)\\(?![bfnrtu"\\/])', r'\\\\', content)
                # literal newlines
                content = re.sub(r'(?<!\\)\n', r'\\n', content)
                return f'"{content}"'

            def remove_comments(input_str):
                return re.sub(r'//.*?$|/\*.*?\*/', '', input_str, flags=re.MULTILINE | re.DOTALL)

            def sanitize_strings(input_str):
                return re.sub(r'(?<!\\)"((?:[^"\\]|\\.)*?)"', process_string_segment, input_str, flags=re.DOTALL)

            input_str = self.clean_triple_backticks(input_str)
            input_str = remove_comments(input_str)
            return sanitize_strings(input_str)

        def load_json(json_str, ensure_ordered):
            err, data = "", None
            try:
                if ensure_ordered:
                    data = commentjson.loads(self.clean_triple_backticks(json_str), object_pairs_hook=OrderedDict)
                else:
                    data = commentjson.loads(self.clean_triple_backticks(json_str))
                return data, ""
            except Exception as e:
                err = str(e)
                data = None
            try:
                data = yaml.safe_load(sanitize_json_string(json_str))
                if isinstance(data, str):
                    raise ValueError("load_fault_tolerant_json: YAML parsing produced a bare string.")
                return data, ""
            except Exception as e:
                err += "\n--\n" + str(e)
                data = None
            return data, err

        if not isinstance(json_str, str) or not json_str.strip():
            raise MalformedPayloadError("Payload text is empty")

        data, err = load_json(json_str, ensure_ordered)
        if data is not None:
            return data
        repaired_json_str = repair_json(json_str)
        r_data, r_err = load_json(repaired_json_str, ensure_ordered)
        # a bare string after repair means the text held no JSON structure
        if r_data is not None and not isinstance(r_data, str):
            return r_data
        logger.warning(f"[JSON] parsing failed after repair: {err or r_err}")
        raise MalformedPayloadError(f"Payload could not be parsed as JSON: {err or r_err}")

    # -----------------------
    # AI response extraction
    # -----------------------

    def extract_marker(self, text: str) -> tuple[tuple[str, str] | None, str]:
        """
        Returns ((kind, action) | None, text_without_markers).
        """
        if not isinstance(text, str):
            return None, ""
        match = MARKER_PATTERN.search(text)
        if not match:
            return None, text
        cleaned = MARKER_PATTERN.sub("", text).strip()
        return (match.group(1).lower(), match.group(2).lower()), cleaned

    def extract_json_block(self, text: str) -> str | None:
        if not isinstance(text, str):
            return None
        match = JSON_BLOCK_PATTERN.search(text)
        if not match:
            return None
        return match.group(1).strip()

    def classify_ai_response(self, text: str) -> str | None:
        """
        'update' for a section merge, 'create' for a full architecture, None otherwise.
        """
        marker, _ = self.extract_marker(text)
        has_block = self.extract_json_block(text) is not None
        text = text or ""

        if marker == ("architecture", "update"):
            return "update"
        if has_block and '"section"' in text:
            return "update"
        if marker == ("architecture", "create"):
            return "create"
        if has_block and '"tech_stack"' in text and '"modules"' in text:
            return "create"
        return None
