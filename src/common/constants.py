"""Shared constants for readbooks.

For environment-based configuration (world directory, decode limits, etc.), use the env module:
    from common.env import env
    depth = env.max_tag_depth()
"""

# Formatting codes: section sign followed by a color (0-9, a-f) or style (k-o, r) character
FORMATTING_CODES: tuple[str, ...] = tuple(f"§{c}" for c in "0123456789abcdefklmnor")

# Item identifiers
WRITTEN_BOOK_ID = "minecraft:written_book"
WRITABLE_BOOK_ID = "minecraft:writable_book"
SHULKER_BOX_MARKER = "shulker_box"
BUNDLE_MARKER = "bundle"
COPPER_CHEST_MARKER = "copper_chest"

# Item component keys (1.20.5+)
WRITTEN_BOOK_CONTENT = "minecraft:written_book_content"
WRITABLE_BOOK_CONTENT = "minecraft:writable_book_content"
CONTAINER_COMPONENT = "minecraft:container"
BUNDLE_CONTENTS_COMPONENT = "minecraft:bundle_contents"
CUSTOM_NAME_COMPONENT = "minecraft:custom_name"

# Book generations as stored in the "generation" field
BOOK_GENERATIONS: dict[int, str] = {
    0: "Original",
    1: "Copy of original",
    2: "Copy of a copy",
    3: "Tattered",
}

# Save folder layout
REGION_DIR = "region"
ENTITIES_DIR = "entities"
PLAYERDATA_DIR = "playerdata"

# Output layout
BOOKS_DIR = "books"
DUPLICATES_DIR = ".duplicates"
SIGNS_FILE = "signs.txt"
BOOKS_CSV = "all_books.csv"
SIGNS_CSV = "all_signs.csv"
SUMMARY_FILE = "summary.txt"
CUSTOM_NAMES_CSV = "all_custom_names.csv"
CUSTOM_NAMES_TXT = "all_custom_names.txt"
CUSTOM_NAMES_JSON = "all_custom_names.json"
LOG_FILE = "logs.txt"

# Widest line a sign can display
SIGN_LINE_WIDTH = 15
