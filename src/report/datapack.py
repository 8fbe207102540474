"""Minecraft datapacks that give back extracted books and rebuild extracted signs.

One datapack is written per command syntax generation::

    <output>/readbooks_datapack_<version>/pack.mcmeta
    <output>/readbooks_datapack_<version>/data/readbooks/function(s)/books.mcfunction
    <output>/readbooks_datapack_<version>/data/readbooks/function(s)/signs.mcfunction

``books.mcfunction`` holds one ``/give`` per unique book. ``signs.mcfunction``
places one oak sign per sign, relative to the player running it: each distinct
text gets its own x offset and repeats of a text are stacked along z. Clicking
the first line of a rebuilt sign prints a teleport link to where it was found.

Usage:
    writer = DatapackWriter(Path("out"))
    writer.add_book(book)
    writer.add_sign(sign, location)
    writer.write()
"""

import json
from dataclasses import dataclass
from pathlib import Path

from common.logger import get_logger
from extract.models import BookKind, BookRecord, Location, SignRecord

logger = get_logger(__name__)

NAMESPACE = "readbooks"

# Command syntax generations, oldest first
DATAPACK_VERSIONS: tuple[str, ...] = ("1_13", "1_14", "1_20_5", "1_21")

PACK_FORMATS: dict[str, int] = {
    "1_13": 4,
    "1_14": 4,
    "1_20_5": 41,
    "1_21": 48,
}

VERSION_DESCRIPTIONS: dict[str, str] = {
    "1_13": "Minecraft 1.13-1.14.3 (uses pack_format 4, functions/ directory)",
    "1_14": "Minecraft 1.14.4-1.19.4 (uses pack_format 4, functions/ directory)",
    "1_20_5": "Minecraft 1.20.5-1.20.6 (uses pack_format 41, functions/ directory)",
    "1_21": "Minecraft 1.21+ (uses pack_format 48, function/ directory)",
}

_PRE_COMPONENT_VERSIONS = frozenset({"1_13", "1_14"})
_EMPTY_BACK_MESSAGES = ", ".join(['[[{"text":""}]]'] * 4)


def datapack_name(version: str) -> str:
    return f"{NAMESPACE}_datapack_{version}"


def function_dir_name(version: str) -> str:
    """``function`` from 1.21 on, ``functions`` before it."""
    return "function" if version == "1_21" else "functions"


def _json(value) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def snbt_string(text: str, quote: str = '"') -> str:
    """Quote ``text`` as an SNBT string literal; line breaks become ``\\n``."""
    escaped = text.replace("\\", "\\\\").replace(quote, "\\" + quote)
    escaped = escaped.replace("\n", "\\n").replace("\r", "\\r")
    return f"{quote}{escaped}{quote}"


def command_text(text: str) -> str:
    """Flatten text onto one line for use inside a command."""
    return text.replace("\n", " ").replace("\r", "")


# Books


def page_component(raw: str, version: str) -> str:
    """JSON text of one raw book page in the shape a version's ``/give`` expects.

    Pages already stored as JSON are kept verbatim; plain pages are wrapped.
    1.14 through 1.20.4 expect every page as a JSON array.
    """
    if version == "1_14":
        if raw.startswith("["):
            return raw
        if raw.startswith("{"):
            return f"[{raw}]"
        return _json([raw])
    if raw.startswith("{"):
        return raw
    return _json({"text": raw})


def book_command(book: BookRecord, version: str) -> str:
    """``/give`` command for a copy of ``book``."""
    if book.kind == BookKind.WRITABLE:
        title, author = "Writable Book", ""
    else:
        title, author = book.title, book.author
    title = snbt_string(command_text(title or "Untitled"))
    author = snbt_string(command_text(author or "Unknown"))

    if version in _PRE_COMPONENT_VERSIONS:
        pages = ",".join(snbt_string(page_component(raw, version), "'") for raw in book.raw_pages)
        return (
            f"give @p written_book{{title:{title},author:{author},"
            f"generation:{book.generation},pages:[{pages}]}}"
        )

    pages = ",".join(snbt_string(page_component(raw, version)) for raw in book.raw_pages)
    component = "minecraft:written_book_content" if version == "1_20_5" else "written_book_content"
    return (
        f"give @p written_book[{component}={{title:{title},author:{author},"
        f"generation:{book.generation},pages:[{pages}]}}]"
    )


# Signs


@dataclass
class SignPlacement:
    """Where a rebuilt sign goes, relative to the player, and where it came from."""

    x: int
    z: int
    origin: tuple[int, int, int] | None = None


class SignPlacer:
    """Hands out sign positions: one x column per distinct text, repeats stacked along z."""

    def __init__(self):
        self._next_x = 1
        self._columns: dict[tuple[str, ...], SignPlacement] = {}

    def place(self, lines: tuple[str, ...], origin: tuple[int, int, int] | None) -> SignPlacement:
        previous = self._columns.get(lines)
        if previous is None:
            placement = SignPlacement(x=self._next_x, z=0, origin=origin)
            self._next_x += 1
        else:
            placement = SignPlacement(x=previous.x, z=previous.z + 1, origin=origin)
        self._columns[lines] = placement
        return placement


def teleport_click(origin: tuple[int, int, int] | None) -> dict | None:
    """Click event printing a link that teleports to ``origin``."""
    if origin is None:
        return None
    x, y, z = origin
    message = {
        "text": f"Sign from ({x} {y} {z})",
        "color": "gray",
        "clickEvent": {"action": "run_command", "value": f"/tp @s {x} {y} {z}"},
    }
    return {"action": "run_command", "value": f"/tellraw @s {_json(message)}"}


def _line_components(lines: tuple[str, ...], origin: tuple[int, int, int] | None) -> list[dict]:
    click = teleport_click(origin)
    components = []
    for i, line in enumerate((*lines, "", "", "", "")[:4]):
        component = {"text": command_text(line)}
        if i == 0 and line and click is not None:
            component["clickEvent"] = click
        components.append(component)
    return components


def sign_command(lines: tuple[str, ...], placement: SignPlacement, version: str) -> str:
    """``/setblock`` command placing an oak sign with ``lines`` on its front."""
    components = _line_components(lines, placement.origin)
    target = f"setblock ~{placement.x} ~ ~{placement.z} oak_sign"

    if version in _PRE_COMPONENT_VERSIONS:
        if version == "1_13":
            texts = [_json(component) for component in components]
        else:
            texts = [_json(["", component]) for component in components]
        quoted = [snbt_string(text, "'") for text in texts]
        fields = ",".join(f"Text{i}:{text}" for i, text in enumerate(quoted, 1))
        return f"{target}{{{fields}}} replace"

    front = ",".join(_json([[component]]) for component in components)
    return (
        f"{target}[rotation=0,waterlogged=false]"
        f"{{front_text:{{messages:[{front}],has_glowing_text:0}},"
        f"back_text:{{messages:[{_EMPTY_BACK_MESSAGES}],has_glowing_text:0}},is_waxed:0}} replace"
    )


class DatapackWriter:
    """Collects book and sign commands and writes one datapack per version."""

    def __init__(self, output_dir: Path, versions: tuple[str, ...] = DATAPACK_VERSIONS):
        self.output_dir = Path(output_dir)
        self.versions = versions
        self.placer = SignPlacer()
        self._books: dict[str, list[str]] = {version: [] for version in versions}
        self._signs: dict[str, list[str]] = {version: [] for version in versions}
        self.book_count = 0
        self.sign_count = 0

    def add_book(self, book: BookRecord) -> None:
        if not book.raw_pages:
            return
        for version in self.versions:
            self._books[version].append(book_command(book, version))
        self.book_count += 1

    def add_sign(self, sign: SignRecord, location: Location) -> None:
        placement = self.placer.place(sign.lines, location.position)
        for version in self.versions:
            self._signs[version].append(sign_command(sign.lines, placement, version))
        self.sign_count += 1

    def function_dir(self, version: str) -> Path:
        return self.output_dir / datapack_name(version) / "data" / NAMESPACE / function_dir_name(version)

    def write(self) -> None:
        """Write ``pack.mcmeta`` and both function files for every version."""
        for version in self.versions:
            function_dir = self.function_dir(version)
            function_dir.mkdir(parents=True, exist_ok=True)
            pack = {
                "pack": {
                    "pack_format": PACK_FORMATS[version],
                    "description": f"readbooks extracted content for {VERSION_DESCRIPTIONS[version]}",
                }
            }
            mcmeta = self.output_dir / datapack_name(version) / "pack.mcmeta"
            mcmeta.write_text(json.dumps(pack, indent=2), encoding="utf-8")
            for name, commands in (("books", self._books[version]), ("signs", self._signs[version])):
                text = "".join(command + "\n" for command in commands)
                (function_dir / f"{name}.mcfunction").write_text(text, encoding="utf-8")
            logger.debug(f"Wrote datapack {datapack_name(version)} (pack_format {PACK_FORMATS[version]})")

        logger.info(
            f"Wrote [bold]{len(self.versions)}[/bold] datapacks with [bold]{self.book_count}[/bold] books "
            f"and [bold]{self.sign_count}[/bold] signs"
        )
