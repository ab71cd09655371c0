"""Named constants — eliminates magic strings across the codebase."""

from __future__ import annotations

# ── Wire tags: address profile ───────────────────────────────────

C_DATA = "C_DATA"
C_STRUCT = "C_STRUCT"
C_ARRAY = "C_ARRAY"

POINTER_TYPE = "pointer"
CHAR_TYPE = "char"

UNINITIALIZED_MARKER = "<UNINITIALIZED>"

HEAP_KIND_READONLY = "readonly_memory"
HEAP_KIND_SIMPLE = "simple"

# ── Wire tags: reference profile ─────────────────────────────────

REF_TAG = "REF"
CLASS_TAG = "CLASS"
INSTANCE_TAG = "INSTANCE"
FUNCTION_TAG = "FUNCTION"
COLLECTION_TAGS: tuple[str, ...] = ("ARRAY", "LIST", "TUPLE", "DICT", "SET")

RETURN_VALUE_KEY = "__return__"

# ── Trace events / status ────────────────────────────────────────

EVENT_STEP_LINE = "step_line"
EVENT_UNCAUGHT_EXCEPTION = "uncaught_exception"

STATUS_SUCCESS = "success"
STATUS_ERROR = "error"

# ── Node identity ────────────────────────────────────────────────

FRAME_NODE_PREFIX = "frame-"
HEAP_NODE_PREFIX = "heap-"
VARIABLE_ANCHOR_PREFIX = "var-"
EDGE_ID_PREFIX = "edge-"

GLOBALS_FRAME_ID = "globals"
GLOBALS_FRAME_LABEL = "Global frame"

PRIMITIVE_KEY_PREFIX = "primitive:"
HELD_REF_KEY_PREFIX = "held:"

NODE_TYPE_STACK_FRAME = "stack-frame"
NODE_TYPE_HEAP_OBJECT = "heap-object"

# ── Presentation ─────────────────────────────────────────────────

DEFAULT_FRAME_X = 50
DEFAULT_FRAME_Y = 100
DEFAULT_FRAME_Y_SPACING = 220
DEFAULT_HEAP_X = 400
DEFAULT_HEAP_Y = 50
DEFAULT_HEAP_Y_SPACING = 250

READONLY_LABEL_PREFIX = "readonly "

MALFORMED_TRACE_MESSAGE = "unsupported or malformed trace"
NO_OUTPUT_MESSAGE = "No output generated"

# ── Languages ────────────────────────────────────────────────────

PROFILE_ADDRESS = "address"
PROFILE_REFERENCE = "reference"
