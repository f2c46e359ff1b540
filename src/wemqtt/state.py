"""Local state and domain types for wemqtt."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

TRUE_PAYLOADS = ("ON", "1")
ALL_MONITORS = "all"
MONITOR_SEPARATOR = "|"


def parse_bool(payload: str) -> bool:
    """Interpret a toggle command payload.

    "ON" and "1" (exact) and "true" (any case) are true; anything else,
    including an empty payload, is false.
    """
    return payload in TRUE_PAYLOADS or payload.lower() == "true"


def format_bool(value: bool) -> str:
    return "ON" if value else "OFF"


@dataclass
class ShadowState:
    """Locally tracked state that Wallpaper Engine offers no query for.

    Attributes:
        show_icons: Whether desktop icons are shown.
        muted: Whether wallpaper audio is muted.
        paused: Whether wallpaper playback is paused.
    """

    show_icons: bool = True
    muted: bool = False
    paused: bool = False


@dataclass(frozen=True)
class WallpaperEntry:
    """A wallpaper known to Wallpaper Engine.

    Attributes:
        id: Workshop id, or the project path for local projects.
        title: Display title.
        path: Path of the wallpaper's project.json.
    """

    id: str
    title: str
    path: str

    @property
    def label(self) -> str:
        """Human readable option label, e.g. "Sunset (abc123)"."""
        return f"{self.title} ({self.id})"

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "title": self.title}


@dataclass
class Catalog:
    """Wallpapers and profiles as last reported by Wallpaper Engine.

    Both lists are replaced wholesale on every refresh.
    """

    wallpapers: list[WallpaperEntry] = field(default_factory=list)
    profiles: list[str] = field(default_factory=list)

    def replace_wallpapers(self, wallpapers: list[WallpaperEntry]) -> None:
        self.wallpapers = list(wallpapers)

    def replace_profiles(self, profiles: list[str]) -> None:
        self.profiles = list(profiles)

    def find_wallpaper(self, reference: str) -> WallpaperEntry | None:
        """Look up a wallpaper by label, id or path.

        Args:
            reference: A "title (id)" label, a bare id or a project path.

        Returns:
            The first matching entry, or None.
        """
        for entry in self.wallpapers:
            if entry.label == reference:
                return entry
        for entry in self.wallpapers:
            if reference in (entry.id, entry.path):
                return entry
        return None


@dataclass
class CurrentWallpaper:
    """Snapshot of the wallpaper currently shown."""

    id: str
    title: str
    description: str = ""
    preview: str = ""
    tags: list[str] = field(default_factory=list)
    path: str = ""
    properties: dict[str, Any] = field(default_factory=dict)

    def state(self) -> dict[str, str]:
        """Compact payload for the state topic."""
        return {"id": self.id, "title": self.title}

    def attributes(self) -> dict[str, Any]:
        """Full payload for the attributes topic."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "preview": self.preview,
            "tags": list(self.tags),
            "path": self.path,
            "properties": dict(self.properties),
        }


@dataclass(frozen=True)
class WallpaperRequest:
    """A parsed wallpaper selection.

    Attributes:
        reference: Label, id or path identifying the wallpaper.
        monitors: Target monitor indices, or None for the application's
            default monitor.
    """

    reference: str
    monitors: tuple[int, ...] | None = None

    @classmethod
    def parse(cls, payload: str, all_monitors: list[int]) -> WallpaperRequest:
        """Parse a select_wallpaper payload.

        Accepts a bare reference ("abc123", "C:/.../project.json") or a
        reference qualified with a monitor selector ("Sunset (abc123)|1",
        "Sunset (abc123)|all").

        Args:
            payload: The raw command payload.
            all_monitors: Indices targeted by the "all" selector.

        Returns:
            The parsed request.

        Raises:
            ValueError: If the payload is empty or the selector is invalid.
        """
        reference, sep, selector = payload.strip().rpartition(MONITOR_SEPARATOR)
        if not sep:
            reference, selector = selector, ""
        reference = reference.strip()
        selector = selector.strip()
        if not reference:
            raise ValueError("empty wallpaper reference")

        if not sep:
            return cls(reference=reference)
        if selector.lower() == ALL_MONITORS:
            return cls(reference=reference, monitors=tuple(all_monitors))
        if selector.isdigit():
            return cls(reference=reference, monitors=(int(selector),))
        raise ValueError(f"invalid monitor selector '{selector}'")

    def resolve(self, catalog: Catalog) -> WallpaperEntry | None:
        return catalog.find_wallpaper(self.reference)


def wallpaper_options(
    wallpapers: list[WallpaperEntry], monitors: list[int], expand: bool
) -> list[str]:
    """Build the option list for the wallpaper select entity.

    Args:
        wallpapers: Current catalog.
        monitors: Configured monitor indices.
        expand: Offer one option per monitor selector instead of bare ids.

    Returns:
        Option strings accepted back by WallpaperRequest.parse.
    """
    if not expand:
        return [entry.id for entry in wallpapers]

    selectors = [ALL_MONITORS] + [str(index) for index in monitors]
    return [
        f"{entry.label}{MONITOR_SEPARATOR}{selector}"
        for entry in wallpapers
        for selector in selectors
    ]


def selected_option(
    catalog: Catalog, wallpaper_id: str, expand: bool
) -> str | None:
    """Return the select option that represents the given wallpaper.

    With expanded options this is the "all monitors" option of the catalog
    entry, so the value is always one of wallpaper_options(). Returns None
    when the wallpaper is not in the catalog.
    """
    entry = catalog.find_wallpaper(wallpaper_id)
    if entry is None:
        return None
    if not expand:
        return entry.id
    return f"{entry.label}{MONITOR_SEPARATOR}{ALL_MONITORS}"
