"""
Control Paragraph Format
========================

Layout:
    # comment                    <- Ignored
    Package: hello               <- Key: value
    Depends: libc6 (>= 2.34),    <- Value may continue on following lines
     libgreet1                   <- Continuation line (leading space or tab)
    Description: short summary
     long description line
     .                           <- Continuation "." is an empty line
     more text
                                 <- Blank line ends the paragraph
    Package: hello-doc
    ...

Design Decisions:
    - Keys are unique inside a paragraph, and their order is kept
    - Values are plain strings; multi-line values join lines with "\\n"
    - Record fields map to keys through dataclass field metadata
    - Field metadata keys are the only per-field options; others are ignored
"""

# Field metadata keys
KEY_META = "control"
REQUIRED_META = "required"
DELIM_META = "delim"

FIELD_OPTIONS = {
    KEY_META: "Paragraph key override (default: the attribute name)",
    REQUIRED_META: "Decoding fails when the key is absent",
    DELIM_META: "Separator for repeated values (default: single space)",
}

# Key that excludes a field from both directions
SKIP_KEY = "-"

# Separator for repeated values when no delim is declared
DEFAULT_DELIM = " "

# Text format
KEY_SEPARATOR = ":"
COMMENT_PREFIX = "#"
CONTINUATION_CHARS = (" ", "\t")
EMPTY_LINE_MARKER = "."
PARAGRAPH_SEPARATOR = "\n"
