"""Change detection between consecutive submissions."""

from dataclasses import dataclass

from listing_studio.domain.listings import FormSnapshot, Photo

_NONE = "none"


@dataclass(frozen=True)
class FieldDelta:
    """Human-readable change of a single property fact."""

    field: str
    old: str
    new: str


@dataclass(frozen=True)
class ChangeSet:
    """Which facets differ between two submissions."""

    deltas: tuple[FieldDelta, ...]
    photos_changed: bool
    address_changed: bool

    @property
    def has_changes(self) -> bool:
        return bool(self.deltas) or self.photos_changed or self.address_changed

    def delta_for(self, field: str) -> FieldDelta | None:
        for delta in self.deltas:
            if delta.field == field:
                return delta
        return None


def detect_changes(previous: FormSnapshot, current: FormSnapshot) -> ChangeSet:
    """Classify what changed from the previous submission to the current one."""
    compared = (
        ("category", previous.category, current.category),
        ("layout", previous.layout, current.layout),
        ("size", previous.size, current.size),
        ("highlights", previous.highlights, current.highlights),
    )
    deltas = tuple(
        FieldDelta(field=name, old=_render(old), new=_render(new))
        for name, old, new in compared
        if old != new
    )
    return ChangeSet(
        deltas=deltas,
        photos_changed=not _same_photos(previous.photos, current.photos),
        address_changed=previous.address != current.address,
    )


def _same_photos(left: tuple[Photo, ...], right: tuple[Photo, ...]) -> bool:
    """Compare photo sets by identity, ignoring order."""
    if len(left) != len(right):
        return False
    return sorted(photo.identity for photo in left) == sorted(
        photo.identity for photo in right
    )


def _render(value: object) -> str:
    if value is None:
        return _NONE
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
