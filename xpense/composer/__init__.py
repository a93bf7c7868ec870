"""Transaction composer: draft transitions, split lines and payload assembly."""

from xpense.composer.assembler import (
    assemble,
    build_transaction_body,
    build_transfer_body,
    group_split_lines,
)
from xpense.composer.draft import (
    ComposerError,
    FieldNotAllowedError,
    InvalidEntryTypeError,
    UnknownFieldError,
    change_entry_type,
    change_mode,
    cleared_fields,
    legal_fields,
    new_draft,
    set_field,
)
from xpense.composer.splits import (
    SplitNotSupportedError,
    create_split_line,
    remove_split_line,
    rescope_split_line,
    split_total,
    update_split_line,
)

__all__ = [
    # Draft
    "ComposerError",
    "FieldNotAllowedError",
    "InvalidEntryTypeError",
    "UnknownFieldError",
    "change_entry_type",
    "change_mode",
    "cleared_fields",
    "legal_fields",
    "new_draft",
    "set_field",
    # Split lines
    "SplitNotSupportedError",
    "create_split_line",
    "remove_split_line",
    "rescope_split_line",
    "split_total",
    "update_split_line",
    # Assembly
    "assemble",
    "build_transaction_body",
    "build_transfer_body",
    "group_split_lines",
]
