"""Content fingerprints for books, signs and custom names."""

import hashlib
import threading

from tags import Tag, TagType


def _framed(text: str) -> str:
    return f"{len(text)}:{text}"


def _scalar_text(tag: Tag) -> str:
    if tag.type == TagType.BYTE_ARRAY:
        return tag.value.hex()
    if tag.type in (TagType.INT_ARRAY, TagType.LONG_ARRAY):
        return ",".join(str(v) for v in tag.value)
    if tag.type in (TagType.FLOAT, TagType.DOUBLE):
        return repr(tag.value)
    if tag.type == TagType.STRING:
        return _framed(tag.value)
    return "" if tag.value is None else str(tag.value)


def _update_canonical(digest, tag: Tag) -> None:
    """Feed a type-tagged, key-sorted serialisation of ``tag`` into ``digest``.

    Equal trees produce equal input whatever their compound key order. The walk
    uses an explicit stack, so any tree the decoder accepts can be hashed.
    """
    pending: list[Tag | str] = [tag]
    while pending:
        node = pending.pop()
        if isinstance(node, str):
            digest.update(node.encode("utf-8"))
        elif node.type == TagType.COMPOUND:
            digest.update(f"{node.type.name}{{{len(node.value)}".encode())
            pending.append("}")
            for key in sorted(node.value, reverse=True):
                pending.append(node.value[key])
                pending.append(_framed(key))
        elif node.type == TagType.LIST:
            digest.update(f"{node.type.name}<{node.element_type.name}>[{len(node.value)}".encode())
            pending.append("]")
            pending.extend(reversed(node.value))
        else:
            digest.update(f"{node.type.name}({_scalar_text(node)})".encode("utf-8"))


def book_fingerprint(pages_tag: Tag) -> str:
    """
    Generate a SHA256 fingerprint of a book's page list.

    Two books share a fingerprint exactly when their page lists are structurally
    equal, whatever their title, author or location.

    Args:
        pages_tag: The ``pages`` list tag of the book

    Returns:
        SHA256 hash prefixed with "sha256:"
    """
    digest = hashlib.sha256()
    _update_canonical(digest, pages_tag)
    return f"sha256:{digest.hexdigest()}"


def sign_fingerprint(location_text: str, raw_lines: tuple[str, ...]) -> str:
    """
    Generate a SHA256 fingerprint of a sign at a location.

    Args:
        location_text: Rendered location of the sign
        raw_lines: The four raw (unresolved) line strings

    Returns:
        SHA256 hash prefixed with "sha256:"
    """
    canonical = "|".join((location_text, *raw_lines))
    return f"sha256:{hashlib.sha256(canonical.encode('utf-8')).hexdigest()}"


def custom_name_fingerprint(name: str, kind: str, target_id: str) -> str:
    """SHA256 fingerprint of a custom name on one kind of item or entity."""
    canonical = "|".join((name, kind, target_id))
    return f"sha256:{hashlib.sha256(canonical.encode('utf-8')).hexdigest()}"


class DuplicateDetector:
    """Remembers fingerprints seen during one extraction run."""

    def __init__(self):
        self._lock = threading.Lock()
        self._books: set[str] = set()
        self._signs: set[str] = set()
        self._custom_names: set[str] = set()

    def _seen_before(self, seen: set[str], fingerprint: str) -> bool:
        with self._lock:
            if fingerprint in seen:
                return True
            seen.add(fingerprint)
            return False

    def is_duplicate_book(self, pages_tag: Tag) -> bool:
        """True if a book with the same pages was already seen; records it otherwise."""
        return self._seen_before(self._books, book_fingerprint(pages_tag))

    def is_duplicate_sign(self, location_text: str, raw_lines: tuple[str, ...]) -> bool:
        """True if the same sign text was already seen at the same location."""
        return self._seen_before(self._signs, sign_fingerprint(location_text, raw_lines))

    def is_duplicate_custom_name(self, name: str, kind: str, target_id: str) -> bool:
        """True if the same name was already seen on the same kind of item or entity."""
        return self._seen_before(self._custom_names, custom_name_fingerprint(name, kind, target_id))

    def reset(self) -> None:
        with self._lock:
            self._books.clear()
            self._signs.clear()
            self._custom_names.clear()

    @property
    def unique_books(self) -> int:
        return len(self._books)

    @property
    def unique_signs(self) -> int:
        return len(self._signs)
