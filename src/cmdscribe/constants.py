"""Application-wide constants for cmdscribe."""

APP_NAME = "cmdscribe"

# Column budget for every rendered usage line
LINE_LENGTH = 79

USAGE_PREFIX = "usage:"

MANIFEST_FILE_NAME = "manifest.json"

# Type text shown for unannotated / Any / object slots
ANY_TYPE_TEXT = "any"
